"""
Main Orchestrator for Home Budgeting

This module ties together all the components and defines the ledger
editing flows a front-end drives:
1. Month management (create from the latest month, delete, upsert)
2. Income, category and transaction editing
3. Notes and collapsed-group preferences
4. Predictions (category, description, end-of-month balance)
5. Import / export

DESIGN DECISION: Every editing operation is exactly one store transform.
Predictor learning that follows a save is a separate transform of its
own, so a failed prediction update never loses the saved data.

This is the "glue": the store, the audit logger and the predictors are
constructed once here and injected, never looked up globally.
"""

import logging
import math
from datetime import date, datetime
from typing import Callable, Iterable, Optional

import structlog

from homebudget.analysis import MonthTotals, compute_month_totals
from homebudget.audit import AuditLogger
from homebudget.config import get_settings
from homebudget.models.budget import (
    DEFAULT_GROUP,
    BalancePrediction,
    BudgetMonth,
    BudgetState,
    Category,
    Income,
    Note,
    Transaction,
    UiPreferences,
    new_id,
    parse_month_key,
)
from homebudget.models.events import LedgerEventBuilder
from homebudget.predictors import BalancePredictor, CategoryPredictor, DescriptionPredictor
from homebudget.services.storage import (
    EventSinkInterface,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
)
from homebudget.store import StateStore
from homebudget.transfer import (
    CategoriesPayload,
    DataFormat,
    ExportDocument,
    ImportSummary,
    PredictionPayload,
    TransactionsPayload,
    TransferKind,
    build_export_payload,
    parse_import,
    render_export,
)
from homebudget.validation import normalize_month


logger = structlog.get_logger(__name__)


class InvalidMonthKeyError(ValueError):
    """A month key is not of the form YYYY-MM with a month of 01-12."""
    pass


def require_month_key(raw: str) -> str:
    key = (raw or "").strip()
    if parse_month_key(key) is None:
        raise InvalidMonthKeyError(f"Enter a month in YYYY-MM format, got {raw!r}")
    return key


class BudgetLedger:
    """
    Composition root and editing API of one household ledger.

    Every month-scoped operation takes the month key explicitly and
    raises InvalidMonthKeyError for a malformed one.
    """

    def __init__(
        self,
        store: StateStore,
        audit_logger: Optional[AuditLogger] = None,
        suggestion_limit: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock
        self._descriptions = DescriptionPredictor(store, default_limit=suggestion_limit)
        self._categories = CategoryPredictor(store, self._descriptions)
        self._balance = BalancePredictor(store)

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def descriptions(self) -> DescriptionPredictor:
        return self._descriptions

    @property
    def categories(self) -> CategoryPredictor:
        return self._categories

    @property
    def balance(self) -> BalancePredictor:
        return self._balance

    def snapshot(self) -> BudgetState:
        return self._store.current_snapshot()

    def month(self, month_key: str) -> Optional[BudgetMonth]:
        return self.snapshot().months.get(month_key)

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    # =========================================================================
    # MONTHS
    # =========================================================================

    def create_month(self, month_key: str) -> BudgetState:
        """
        Add a month, seeded with the categories of the latest existing
        month. Does nothing if the month already exists.
        """
        key = require_month_key(month_key)

        def mutator(state: BudgetState) -> BudgetState:
            if key in state.months:
                return state
            keys = state.sorted_month_keys()
            seed = state.months[keys[-1]].categories if keys else {}
            months = dict(state.months)
            months[key] = BudgetMonth(categories=dict(seed))
            return state.model_copy(update={"months": months})

        return self._store.transform(mutator)

    def delete_month(self, month_key: str) -> BudgetState:
        """Remove a month together with its collapsed-group preferences."""
        key = require_month_key(month_key)

        def mutator(state: BudgetState) -> BudgetState:
            if key not in state.months:
                return state
            months = {k: v for k, v in state.months.items() if k != key}
            collapsed = {k: v for k, v in state.ui.collapsed.items() if k != key}
            return state.model_copy(update={
                "months": months,
                "ui": UiPreferences(collapsed=collapsed),
            })

        return self._store.transform(mutator)

    def update_month(self, month_key: str, fn: Callable[[BudgetMonth], BudgetMonth]) -> BudgetState:
        """Replace a month with `fn(month)`; a missing month starts empty."""
        key = require_month_key(month_key)

        def mutator(state: BudgetState) -> BudgetState:
            months = dict(state.months)
            months[key] = fn(state.months.get(key) or BudgetMonth())
            return state.model_copy(update={"months": months})

        return self._store.transform(mutator)

    # =========================================================================
    # INCOMES
    # =========================================================================

    def add_income(self, month_key: str, name: str, amount: float) -> Optional[Income]:
        if not (name or "").strip():
            return None
        income = Income(name=name.strip(), amount=amount)
        self.update_month(
            month_key,
            lambda month: month.model_copy(update={"incomes": month.incomes + [income]}),
        )
        return income

    def update_income(self, month_key: str, income_id: str, name: str, amount: float) -> BudgetState:
        def edit(month: BudgetMonth) -> BudgetMonth:
            incomes = [
                Income(id=income.id, name=(name or "").strip(), amount=amount)
                if income.id == income_id else income
                for income in month.incomes
            ]
            return month.model_copy(update={"incomes": incomes})

        return self.update_month(month_key, edit)

    def delete_income(self, month_key: str, income_id: str) -> BudgetState:
        return self.update_month(
            month_key,
            lambda month: month.model_copy(update={
                "incomes": [income for income in month.incomes if income.id != income_id]
            }),
        )

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def set_category(self, month_key: str, name: str, group: str, budget: float) -> Optional[BudgetState]:
        """Add or replace a category. A blank name is ignored."""
        if not (name or "").strip():
            return None
        category = Category(group=(group or "").strip() or DEFAULT_GROUP, budget=budget)

        def edit(month: BudgetMonth) -> BudgetMonth:
            categories = dict(month.categories)
            categories[name] = category
            return month.model_copy(update={"categories": categories})

        return self.update_month(month_key, edit)

    def delete_category(self, month_key: str, name: str) -> BudgetState:
        return self.update_month(
            month_key,
            lambda month: month.model_copy(update={
                "categories": {k: v for k, v in month.categories.items() if k != name}
            }),
        )

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def save_transaction(
        self,
        month_key: str,
        date_text: str,
        desc: str,
        amount: float,
        category: Optional[str] = None,
        editing_id: Optional[str] = None,
    ) -> Optional[Transaction]:
        """
        Add a transaction, or replace the one with `editing_id`, then
        learn from it.

        Returns None (and changes nothing) for a blank date or
        description or a non-finite amount.
        """
        if not (date_text or "").strip() or not (desc or "").strip():
            return None
        if amount is None or not math.isfinite(amount):
            return None

        tx = Transaction(
            id=editing_id or new_id(),
            date=date_text.strip(),
            desc=desc.strip(),
            amount=amount,
            category=(category or "").strip(),
        )

        def edit(month: BudgetMonth) -> BudgetMonth:
            transactions = list(month.transactions)
            for index, existing in enumerate(transactions):
                if existing.id == tx.id:
                    transactions[index] = tx
                    break
            else:
                transactions.append(tx)
            return month.model_copy(update={"transactions": transactions})

        self.update_month(month_key, edit)
        self._categories.record_transaction(tx)
        return tx

    def delete_transaction(self, month_key: str, transaction_id: str) -> BudgetState:
        return self.update_month(
            month_key,
            lambda month: month.model_copy(update={
                "transactions": [tx for tx in month.transactions if tx.id != transaction_id]
            }),
        )

    def clear_transactions(self, month_key: str) -> BudgetState:
        return self.update_month(
            month_key,
            lambda month: month.model_copy(update={"transactions": []}),
        )

    # =========================================================================
    # NOTES
    # =========================================================================

    def add_note(self, desc: str, body: str) -> Optional[Note]:
        """Add a note stamped with the current time. Ignored when both fields are blank."""
        if not (desc or "").strip() and not (body or "").strip():
            return None
        created: list[Note] = []

        def mutator(state: BudgetState) -> BudgetState:
            time = self._now_ms()
            note_id = time
            taken = {note.id for note in state.notes}
            while note_id in taken:
                note_id += 1
            note = Note(id=note_id, desc=(desc or "").strip(), data=(body or "").strip(), time=time)
            created.append(note)
            return state.model_copy(update={"notes": state.notes + [note]})

        self._store.transform(mutator)
        return created[0]

    def update_note(self, note_id: int, desc: str, body: str) -> bool:
        """Rewrite a note and refresh its time. Returns False for an unknown id."""
        found = []

        def mutator(state: BudgetState) -> BudgetState:
            notes = []
            for note in state.notes:
                if note.id == note_id:
                    found.append(note_id)
                    note = Note(
                        id=note.id,
                        desc=(desc or "").strip(),
                        data=(body or "").strip(),
                        time=self._now_ms(),
                    )
                notes.append(note)
            return state.model_copy(update={"notes": notes})

        self._store.transform(mutator)
        return bool(found)

    def delete_note(self, note_id: int) -> BudgetState:
        return self._store.transform(
            lambda state: state.model_copy(update={
                "notes": [note for note in state.notes if note.id != note_id]
            })
        )

    # =========================================================================
    # COLLAPSED GROUPS
    # =========================================================================

    def set_collapsed(self, month_key: str, group: str, collapsed: bool) -> BudgetState:
        key = require_month_key(month_key)

        def mutator(state: BudgetState) -> BudgetState:
            all_collapsed = dict(state.ui.collapsed)
            groups = dict(all_collapsed.get(key, {}))
            if collapsed:
                groups[group] = True
            else:
                groups.pop(group, None)
            if groups:
                all_collapsed[key] = groups
            else:
                all_collapsed.pop(key, None)
            return state.model_copy(update={"ui": UiPreferences(collapsed=all_collapsed)})

        return self._store.transform(mutator)

    def set_all_collapsed(self, month_key: str, groups: Iterable[str], collapsed: bool) -> BudgetState:
        key = require_month_key(month_key)
        groups = list(groups)

        def mutator(state: BudgetState) -> BudgetState:
            all_collapsed = dict(state.ui.collapsed)
            if collapsed:
                all_collapsed[key] = {group: True for group in groups}
            else:
                all_collapsed.pop(key, None)
            return state.model_copy(update={"ui": UiPreferences(collapsed=all_collapsed)})

        return self._store.transform(mutator)

    def is_collapsed(self, month_key: str, group: str) -> bool:
        return self.snapshot().ui.collapsed.get(month_key, {}).get(group, False)

    # =========================================================================
    # PREDICTIONS
    # =========================================================================

    def predict_category(self, month_key: str, desc: str, amount: Optional[float] = None) -> str:
        """Predict against the category names of `month_key`."""
        month = self.month(month_key)
        known = month.categories.keys() if month else []
        return self._categories.predict(desc, known, amount)

    def suggest_descriptions(self, partial: str, limit: Optional[int] = None) -> list[str]:
        return self._descriptions.suggest(partial, limit)

    def pin_prediction(self, desc: str, category: str) -> None:
        self._categories.pin_mapping(desc, category)

    def predict_balance(
        self,
        month_key: str,
        reference_date: Optional[date] = None,
    ) -> Optional[BalancePrediction]:
        return self._balance.predict(month_key, reference_date or self._clock().date())

    def month_totals(self, month_key: str) -> MonthTotals:
        return compute_month_totals(self.month(month_key))

    # =========================================================================
    # IMPORT / EXPORT
    # =========================================================================

    def export_data(
        self,
        kind: TransferKind,
        month_key: Optional[str] = None,
        fmt: DataFormat = DataFormat.JSON,
    ) -> ExportDocument:
        """
        Raises:
            DataTransferError: For a month-scoped kind without a valid
                month key, or CSV for anything but transactions
        """
        payload = build_export_payload(self.snapshot(), kind, month_key)
        return render_export(payload, fmt)

    def import_data(
        self,
        content: bytes,
        kind: Optional[TransferKind] = None,
        month_key: Optional[str] = None,
        fmt: DataFormat = DataFormat.JSON,
    ) -> ImportSummary:
        """
        Apply an import. Content without the container its kind needs
        leaves the ledger untouched and yields `applied=False`.
        """
        payload = parse_import(content, kind=kind, month_key=month_key, fmt=fmt)
        if payload is None:
            self._audit_logger.log(
                LedgerEventBuilder.import_rejected(
                    kind.value if kind else None,
                    "content does not match any import format",
                )
            )
            return ImportSummary(
                applied=False,
                kind=kind,
                message="The selected file does not contain data that can be imported.",
            )

        if isinstance(payload, TransactionsPayload):
            added = self._append_transactions(payload.month_key, payload.transactions)
            return ImportSummary(
                applied=True,
                kind=payload.kind,
                count=added,
                message=f"Imported {added} transactions into {payload.month_key}.",
            )

        if isinstance(payload, CategoriesPayload):
            incoming = normalize_month(BudgetMonth(categories=payload.categories)).categories
            self.update_month(
                payload.month_key,
                lambda month: month.model_copy(update={
                    "categories": {**month.categories, **incoming}
                }),
            )
            return ImportSummary(
                applied=True,
                kind=payload.kind,
                count=len(incoming),
                message=f"Merged {len(incoming)} categories into {payload.month_key}.",
            )

        if isinstance(payload, PredictionPayload):
            self._store.import_snapshot(payload.to_state(self.snapshot().version))
            return ImportSummary(
                applied=True,
                kind=payload.kind,
                message="Imported prediction data.",
            )

        self._store.import_snapshot(payload.state)
        return ImportSummary(
            applied=True,
            kind=payload.kind,
            count=len(payload.state.months),
            message="Imported full backup.",
        )

    def _append_transactions(self, month_key: str, transactions: list[Transaction]) -> int:
        """
        Append imported rows with fresh ids. Blank categories are
        predicted against the month's categories plus those of rows
        already prepared.
        """
        if not transactions:
            return 0

        month = self.month(month_key)
        known = set(month.categories) if month else set()
        cleaned = normalize_month(BudgetMonth(transactions=transactions)).transactions

        prepared = []
        for tx in cleaned:
            tx = tx.model_copy(update={"id": new_id()})
            if not tx.category:
                predicted = self._categories.predict(tx.desc, known, tx.amount)
                if predicted:
                    tx = tx.model_copy(update={"category": predicted})
            if tx.category:
                known.add(tx.category)
            prepared.append(tx)

        self.update_month(
            month_key,
            lambda month: month.model_copy(update={"transactions": month.transactions + prepared}),
        )
        for tx in prepared:
            self._categories.record_transaction(tx)

        logger.info("transactions_imported", month_key=month_key, count=len(prepared))
        return len(prepared)


def create_app_components(
    use_storage: bool = True,
    storage: Optional[SnapshotStorageInterface] = None,
    event_sink: Optional[EventSinkInterface] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> BudgetLedger:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to keep the ledger in the configured JSON file.
                    Set to False for a throwaway in-memory ledger.
        storage: Explicit storage backend (overrides use_storage)
        event_sink: Optional sink receiving every ledger event
        clock: Source of "now" for notes and balance predictions

    Returns:
        The wired-up BudgetLedger
    """
    settings = get_settings()
    logging.getLogger("homebudget").setLevel(settings.app.log_level)

    if storage is None:
        storage = JsonFileSnapshotStorage() if use_storage else InMemorySnapshotStorage()

    audit_logger = AuditLogger(event_sink)
    store = StateStore(storage, audit_logger=audit_logger)

    return BudgetLedger(
        store,
        audit_logger=audit_logger,
        suggestion_limit=settings.prediction.suggestion_limit,
        clock=clock,
    )
