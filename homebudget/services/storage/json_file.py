"""
JSON File Storage Implementation

DESIGN DECISION: One JSON document per installation, on local disk:
1. The user can open, back up or copy their ledger with any tool
2. No database setup required
3. Whole-document writes match the whole-snapshot transform model

TRADEOFFS:
- Every transform rewrites the full document (fine at household scale)
- No partial reads (we always want the whole ledger anyway)

Writes go to a temporary file beside the target and are moved over it,
so a crash mid-write leaves the previous snapshot intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from homebudget.config import StorageSettings, get_settings
from homebudget.services.storage.interface import (
    SnapshotStorageInterface,
    StorageError,
    StorageUnavailableError,
)


logger = structlog.get_logger(__name__)


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """
    File-backed snapshot storage.

    Reads return None for a missing file. Writes are atomic and retried
    with exponential back-off before a StorageError is raised.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        settings: Optional[StorageSettings] = None,
    ):
        self._settings = settings or get_settings().storage
        self._path = Path(path).expanduser() if path else self._settings.snapshot_path

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def load(self) -> Optional[bytes]:
        """Read the snapshot file, or None if it does not exist."""
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailableError(f"Failed to read ledger file {self._path}: {e}")

    def save(self, data: bytes) -> None:
        """Atomically replace the snapshot file, retrying transient failures."""
        retrying = Retrying(
            stop=stop_after_attempt(self._settings.write_attempts),
            wait=wait_exponential(
                multiplier=self._settings.retry_wait_min_seconds,
                min=self._settings.retry_wait_min_seconds,
                max=self._settings.retry_wait_max_seconds,
            ),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._write_atomically(data)
        except OSError as e:
            raise StorageError(f"Failed to write ledger file {self._path}: {e}")

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete ledger file {self._path}: {e}")

    def _write_atomically(self, data: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError:
            logger.warning("ledger_write_attempt_failed", path=str(self._path))
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
