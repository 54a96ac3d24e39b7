"""
Abstract Storage Interface

DESIGN DECISION: The ledger engine never touches a disk directly.
It is handed a storage collaborator that moves opaque bytes in and out.
This allows us to:
1. Keep the JSON file backend for the desktop/CLI case
2. Use in-memory storage for testing
3. Put the ledger anywhere else (app sandbox, cloud drive) later
4. Keep encoding (snapshot <-> bytes) in one place, outside the backends

The interface is intentionally tiny: one document per installation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from homebudget.models.events import LedgerEvent


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for durable snapshot storage.

    Any storage implementation (file, memory, remote) must implement
    these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the snapshot lives."""
        pass

    @abstractmethod
    def load(self) -> Optional[bytes]:
        """
        Read the stored snapshot.

        Returns:
            The raw document, or None when nothing has been stored yet

        Raises:
            StorageUnavailableError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, data: bytes) -> None:
        """
        Replace the stored snapshot.

        Args:
            data: The encoded ledger document

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """
        Delete the stored snapshot.

        The next load then yields None and the ledger starts empty.
        """
        pass


class EventSinkInterface(ABC):
    """
    Abstract interface for ledger event persistence.

    Events are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: LedgerEvent) -> bool:
        """
        Append an event.

        Returns:
            True if recorded successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[LedgerEvent]:
        """
        Get the most recent events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageUnavailableError(StorageError):
    """Could not read from or reach the storage backend."""
    pass


class CorruptSnapshotError(StorageError):
    """Stored bytes are not a ledger document."""
    pass
