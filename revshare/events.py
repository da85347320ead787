"""
Transaction event hooks.

Listeners subscribe to an event name and are called after the lifecycle
manager has completed a write. Outbound delivery (webhooks, queues) belongs
to whatever the listener does.
"""

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

TRANSACTION_CREATED = "transaction.created"
TRANSACTION_UPDATED = "transaction.updated"
TRANSACTION_DELETED = "transaction.deleted"

EVENTS = (TRANSACTION_CREATED, TRANSACTION_UPDATED, TRANSACTION_DELETED)

Listener = Callable[[str, Any], None]


class EventHooks:
    """Synchronous observer registry."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event: str, listener: Listener) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}. Must be one of {', '.join(EVENTS)}")
        self._listeners[event].append(listener)

    def unsubscribe(self, event: str, listener: Listener) -> None:
        if listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    def emit(self, event: str, payload: Any) -> None:
        """Call every listener for event. A failing listener never blocks the others."""
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(event, payload)
            except Exception as e:
                logger.error(f"Listener for {event} failed: {str(e)}", exc_info=True)
