"""
Exceptions raised by the revenue share core.

Input validation failures are plain ValueError, as in the validators.
"""


class NotFoundError(LookupError):
    """A referenced agent or transaction does not exist."""

    def __init__(self, kind: str, entity_id: int):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class PersistenceError(RuntimeError):
    """The underlying store rejected a read or write."""
