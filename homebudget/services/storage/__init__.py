"""
Storage Services Package

Provides the abstract snapshot storage interface and its implementations.
The JSON file backend is the default; the in-memory ones serve tests.
"""

from homebudget.services.storage.interface import (
    CorruptSnapshotError,
    EventSinkInterface,
    SnapshotStorageInterface,
    StorageError,
    StorageUnavailableError,
)
from homebudget.services.storage.json_file import JsonFileSnapshotStorage
from homebudget.services.storage.memory import (
    InMemoryEventSink,
    InMemorySnapshotStorage,
)

__all__ = [
    # Interfaces
    "EventSinkInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "CorruptSnapshotError",
    "StorageError",
    "StorageUnavailableError",
    # Implementations
    "InMemoryEventSink",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
]
