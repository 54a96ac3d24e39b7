"""Services package."""

from homebudget.services.storage import (
    CorruptSnapshotError,
    EventSinkInterface,
    InMemoryEventSink,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
    StorageUnavailableError,
)

__all__ = [
    "CorruptSnapshotError",
    "EventSinkInterface",
    "InMemoryEventSink",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "SnapshotStorageInterface",
    "StorageError",
    "StorageUnavailableError",
]
