"""
Keyed lock registry.

Hands out one lock per key so that work on the same transaction (or the same
recipient/source pair) is serialized while unrelated keys proceed in parallel.
"""

import threading
from contextlib import contextmanager
from typing import Hashable


class KeyedLock:
    """Lazily created per-key locks. Entries are dropped once nobody holds them."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
