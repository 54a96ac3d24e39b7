"""
In-Memory Storage Implementations

Used by tests and by callers that want a throwaway ledger. They follow
the same contracts as the file backend: a missing snapshot loads as
None, and events are kept append-only.
"""

import threading
from typing import Optional

from homebudget.models.events import LedgerEvent
from homebudget.services.storage.interface import (
    EventSinkInterface,
    SnapshotStorageInterface,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Keeps the encoded snapshot in a bytes attribute."""

    def __init__(self, data: Optional[bytes] = None):
        self.data = data
        self.save_count = 0

    @property
    def location(self) -> str:
        return "memory"

    def load(self) -> Optional[bytes]:
        return self.data

    def save(self, data: bytes) -> None:
        self.data = data
        self.save_count += 1

    def clear(self) -> None:
        self.data = None


class InMemoryEventSink(EventSinkInterface):
    """Keeps events in a list, oldest first."""

    def __init__(self):
        self._events: list[LedgerEvent] = []
        self._lock = threading.Lock()

    def append_event(self, event: LedgerEvent) -> bool:
        with self._lock:
            self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[LedgerEvent]:
        with self._lock:
            return list(reversed(self._events))[:limit]
