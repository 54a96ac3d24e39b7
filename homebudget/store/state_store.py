"""
State Store

DESIGN DECISION: The ledger has exactly one owner. Every change is a
transform: a function from the current snapshot to the next one. The
store runs it under a lock, normalizes the result, persists it, swaps
it in and tells subscribers. That gives:

1. A total order of writes (no lost updates)
2. Lock-free reads: a published snapshot is frozen and never changes
3. One place where persistence failures are handled

Persistence failures do NOT roll back the swap. The newest snapshot
stays authoritative for the process; the failure is logged, remembered
in `last_persist_error`, handed to `on_persist_error`, and the next
successful write (or an explicit `flush()`) reconciles the disk.
"""

import threading
from typing import Callable, Optional

from homebudget.audit.logger import AuditLogger
from homebudget.models.budget import BudgetState
from homebudget.models.events import LedgerEventBuilder
from homebudget.services.storage.interface import SnapshotStorageInterface, StorageError
from homebudget.store.merge import merge_states
from homebudget.transfer.codec import decode_snapshot, encode_snapshot
from homebudget.validation.normalizer import normalize


Mutator = Callable[[BudgetState], BudgetState]
Subscriber = Callable[[BudgetState], None]


class PersistenceError(StorageError):
    """The current snapshot could not be written to durable storage."""
    pass


class StateStore:
    """
    Owner of the canonical ledger snapshot.

    Usage:
        store = StateStore(JsonFileSnapshotStorage())
        store.transform(lambda state: state.model_copy(update={"version": 2}))
        latest = store.current_snapshot()
    """

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        normalizer: Callable[[BudgetState], BudgetState] = normalize,
        on_persist_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._normalizer = normalizer
        self._on_persist_error = on_persist_error

        # RLock so a subscriber may read the store while being notified
        self._lock = threading.RLock()
        self._snapshot: Optional[BudgetState] = None
        self._subscribers: list[Subscriber] = []
        self._sequence = 0
        self._dirty = False
        self._last_persist_error: Optional[Exception] = None

    @property
    def storage(self) -> SnapshotStorageInterface:
        return self._storage

    @property
    def sequence(self) -> int:
        """Number of transforms applied since construction."""
        return self._sequence

    @property
    def is_dirty(self) -> bool:
        """True while the latest snapshot has not reached durable storage."""
        return self._dirty

    @property
    def last_persist_error(self) -> Optional[Exception]:
        return self._last_persist_error

    # =========================================================================
    # READ
    # =========================================================================

    def current_snapshot(self) -> BudgetState:
        """
        The latest snapshot, loaded from storage on first access.

        Never raises: a missing or unreadable snapshot yields the empty
        ledger.
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._load()
            return self._snapshot

    def _load(self) -> BudgetState:
        source = self._storage.location
        try:
            data = self._storage.load()
            if data is None:
                state = BudgetState()
            else:
                state = decode_snapshot(data)
        except Exception as e:
            self._audit_logger.log(
                LedgerEventBuilder.snapshot_load_failed(source, str(e))
            )
            return self._normalizer(BudgetState())

        state = self._normalizer(state)
        self._audit_logger.log(
            LedgerEventBuilder.snapshot_loaded(len(state.months), source)
        )
        return state

    # =========================================================================
    # WRITE
    # =========================================================================

    def transform(self, mutator: Mutator) -> BudgetState:
        """
        Apply `mutator` atomically and return the new snapshot.

        The mutator receives a private deep copy of the current snapshot.
        If it raises, nothing changes and the exception propagates.
        A failed write never undoes the swap, even when `on_persist_error`
        raises.
        """
        with self._lock:
            previous = self.current_snapshot()
            updated = self._normalizer(mutator(previous.model_copy(deep=True)))

            self._sequence += 1
            sequence = self._sequence
            changed = updated != previous
            self._audit_logger.log(
                LedgerEventBuilder.transform_applied(sequence, changed)
            )

            self._snapshot = updated
            error = self._persist(updated, sequence)

            if changed:
                self._notify(updated)
            if error is not None:
                self._report_persist_error(error)
            return updated

    def import_snapshot(self, incoming: BudgetState) -> BudgetState:
        """Merge another copy of the ledger into this one as a single transform."""
        incoming = self._normalizer(incoming)
        result = self.transform(lambda current: merge_states(current, incoming))
        self._audit_logger.log(
            LedgerEventBuilder.snapshot_imported(
                month_keys=sorted(incoming.months),
                notes=len(incoming.notes),
                desc_list=len(incoming.desc_list),
            )
        )
        return result

    def flush(self) -> BudgetState:
        """
        Write the current snapshot to storage now.

        Raises:
            PersistenceError: If the write still fails
        """
        with self._lock:
            snapshot = self.current_snapshot()
            error = self._persist(snapshot, self._sequence)
            if error is not None:
                self._report_persist_error(error)
                raise PersistenceError(
                    f"Could not persist ledger to {self._storage.location}: {error}"
                ) from error
            return snapshot

    def _persist(self, snapshot: BudgetState, sequence: int) -> Optional[Exception]:
        """Write `snapshot`; returns the failure instead of raising it."""
        try:
            self._storage.save(encode_snapshot(snapshot))
        except Exception as e:
            self._dirty = True
            self._last_persist_error = e
            self._audit_logger.log(
                LedgerEventBuilder.persist_failed(sequence, str(e))
            )
            return e

        self._dirty = False
        self._last_persist_error = None
        self._audit_logger.log(LedgerEventBuilder.snapshot_persisted(sequence))
        return None

    def _report_persist_error(self, error: Exception) -> None:
        # Runs after the swap; whatever the callback raises reaches the caller
        if self._on_persist_error:
            self._on_persist_error(error)

    # =========================================================================
    # OBSERVE
    # =========================================================================

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call `callback` with every new snapshot, in write order.

        Transforms that leave the ledger unchanged do not notify.
        Returns a function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, snapshot: BudgetState) -> None:
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as e:
                name = getattr(callback, "__qualname__", repr(callback))
                self._audit_logger.log(
                    LedgerEventBuilder.subscriber_failed(name, str(e))
                )
