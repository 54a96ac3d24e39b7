"""
Import / Export Payloads

DESIGN DECISION: Every transfer is one of four kinds, modelled as a
discriminated union rather than string dispatch:

    transactions - the transactions of one month (JSON list or CSV)
    categories   - the categories of one month ({"categories": {...}})
    prediction   - the learned mappings ({mapping, descMap, descList})
    all          - the full ledger document

Exports are read-only projections of a snapshot. Imports are parsed
into a payload first; content that does not have the container its kind
needs parses to None, and the caller treats the import as a no-op.
"""

import json
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from homebudget.models.budget import (
    BudgetState,
    Category,
    DescriptionMap,
    PredictionMapping,
    Transaction,
    parse_month_key,
)
from homebudget.services.storage.interface import CorruptSnapshotError
from homebudget.transfer.codec import encode_snapshot, load_json, state_from_document
from homebudget.transfer.csv_format import (
    CsvFormatError,
    parse_transactions_csv,
    render_transactions_csv,
)


logger = structlog.get_logger(__name__)


class DataTransferError(Exception):
    """The caller asked for a transfer that cannot be expressed."""
    pass


class TransferKind(str, Enum):
    """What an export contains / an import carries."""
    TRANSACTIONS = "transactions"
    CATEGORIES = "categories"
    PREDICTION = "prediction"
    ALL = "all"

    @property
    def month_scoped(self) -> bool:
        return self in (TransferKind.TRANSACTIONS, TransferKind.CATEGORIES)


class DataFormat(str, Enum):
    """Wire format. CSV only exists for transactions."""
    JSON = "json"
    CSV = "csv"


# =============================================================================
# PAYLOAD VARIANTS
# =============================================================================

class TransactionsPayload(BaseModel):
    kind: Literal[TransferKind.TRANSACTIONS] = TransferKind.TRANSACTIONS
    month_key: str
    transactions: list[Transaction] = Field(default_factory=list)


class CategoriesPayload(BaseModel):
    kind: Literal[TransferKind.CATEGORIES] = TransferKind.CATEGORIES
    month_key: str
    categories: dict[str, Category] = Field(default_factory=dict)


class PredictionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: Literal[TransferKind.PREDICTION] = TransferKind.PREDICTION
    mapping: PredictionMapping = Field(default_factory=PredictionMapping)
    desc_map: DescriptionMap = Field(default_factory=DescriptionMap, alias="descMap")
    desc_list: list[str] = Field(default_factory=list, alias="descList")

    def to_state(self, version: int) -> BudgetState:
        """A synthetic ledger carrying only the learned mappings."""
        return BudgetState(
            version=version,
            mapping=self.mapping,
            desc_map=self.desc_map,
            desc_list=self.desc_list,
        )


class FullPayload(BaseModel):
    kind: Literal[TransferKind.ALL] = TransferKind.ALL
    state: BudgetState


TransferPayload = Annotated[
    Union[TransactionsPayload, CategoriesPayload, PredictionPayload, FullPayload],
    Field(discriminator="kind"),
]


class ExportDocument(BaseModel):
    """A rendered export, ready to be written wherever the host wants."""

    file_name: str
    mime_type: str
    content: bytes


class ImportSummary(BaseModel):
    """Outcome of one import, phrased for the user."""

    applied: bool
    kind: Optional[TransferKind] = None
    count: int = 0
    message: str


# =============================================================================
# EXPORT
# =============================================================================

def _require_month_key(kind: TransferKind, month_key: Optional[str]) -> str:
    if parse_month_key(month_key) is None:
        raise DataTransferError(f"A YYYY-MM month key is required for {kind.value} transfers")
    return month_key


def build_export_payload(
    state: BudgetState,
    kind: TransferKind,
    month_key: Optional[str] = None,
) -> TransferPayload:
    """Project a snapshot onto the payload of `kind`."""
    if kind == TransferKind.TRANSACTIONS:
        key = _require_month_key(kind, month_key)
        month = state.months.get(key)
        return TransactionsPayload(
            month_key=key,
            transactions=list(month.transactions) if month else [],
        )
    if kind == TransferKind.CATEGORIES:
        key = _require_month_key(kind, month_key)
        month = state.months.get(key)
        return CategoriesPayload(
            month_key=key,
            categories=dict(month.categories) if month else {},
        )
    if kind == TransferKind.PREDICTION:
        return PredictionPayload(
            mapping=state.mapping,
            desc_map=state.desc_map,
            desc_list=state.desc_list,
        )
    return FullPayload(state=state)


def _json_bytes(document: Any) -> bytes:
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


def render_export(payload: TransferPayload, fmt: DataFormat = DataFormat.JSON) -> ExportDocument:
    """Render a payload in the requested format with its conventional file name."""
    if fmt == DataFormat.CSV and payload.kind != TransferKind.TRANSACTIONS:
        raise DataTransferError(f"CSV is not available for {payload.kind.value} exports")

    if isinstance(payload, TransactionsPayload):
        if fmt == DataFormat.CSV:
            return ExportDocument(
                file_name=f"transactions-{payload.month_key}.csv",
                mime_type="text/csv",
                content=render_transactions_csv(payload.transactions).encode("utf-8"),
            )
        return ExportDocument(
            file_name=f"transactions-{payload.month_key}.json",
            mime_type="application/json",
            content=_json_bytes([tx.model_dump(mode="json") for tx in payload.transactions]),
        )
    if isinstance(payload, CategoriesPayload):
        return ExportDocument(
            file_name="categories.json",
            mime_type="application/json",
            content=_json_bytes({
                "categories": {
                    name: category.model_dump(mode="json")
                    for name, category in payload.categories.items()
                }
            }),
        )
    if isinstance(payload, PredictionPayload):
        return ExportDocument(
            file_name="prediction-map.json",
            mime_type="application/json",
            content=_json_bytes(payload.model_dump(mode="json", by_alias=True, exclude={"kind"})),
        )
    return ExportDocument(
        file_name="budget-all.json",
        mime_type="application/json",
        content=encode_snapshot(payload.state, pretty=True),
    )


# =============================================================================
# IMPORT
# =============================================================================

def detect_kind(document: Any) -> Optional[TransferKind]:
    """Guess the kind of a parsed JSON import from its containers."""
    if isinstance(document, list):
        return TransferKind.TRANSACTIONS
    if not isinstance(document, dict):
        return None
    if "months" in document:
        return TransferKind.ALL
    if "transactions" in document:
        return TransferKind.TRANSACTIONS
    if "categories" in document:
        return TransferKind.CATEGORIES
    if any(key in document for key in ("mapping", "descMap", "descList")):
        return TransferKind.PREDICTION
    return None


def _rejected(kind: Optional[TransferKind], reason: str) -> None:
    logger.warning("import_payload_rejected", kind=kind.value if kind else None, reason=reason)
    return None


def _decode_text(content: Union[bytes, str]) -> Optional[str]:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return None


def parse_import(
    content: Union[bytes, str],
    kind: Optional[TransferKind] = None,
    month_key: Optional[str] = None,
    fmt: DataFormat = DataFormat.JSON,
) -> Optional[TransferPayload]:
    """
    Parse import content into a payload.

    Returns None when the content lacks the container its kind needs
    (the import is then a no-op).

    Raises:
        DataTransferError: For caller mistakes - CSV for a non-transaction
            kind, or a month-scoped kind without a valid month key
    """
    if fmt == DataFormat.CSV:
        if kind not in (None, TransferKind.TRANSACTIONS):
            raise DataTransferError(f"CSV is not available for {kind.value} imports")
        key = _require_month_key(TransferKind.TRANSACTIONS, month_key)
        text = _decode_text(content)
        if text is None:
            return _rejected(TransferKind.TRANSACTIONS, "content is not UTF-8 text")
        try:
            transactions = parse_transactions_csv(text)
        except CsvFormatError as e:
            return _rejected(TransferKind.TRANSACTIONS, str(e))
        return TransactionsPayload(month_key=key, transactions=transactions)

    try:
        document = load_json(content)
    except CorruptSnapshotError as e:
        return _rejected(kind, str(e))

    kind = kind or detect_kind(document)
    if kind is None:
        return _rejected(None, "unrecognized document")

    try:
        if kind == TransferKind.TRANSACTIONS:
            items = document.get("transactions") if isinstance(document, dict) else document
            if not isinstance(items, list):
                return _rejected(kind, "no transaction list")
            key = _require_month_key(kind, month_key)
            return TransactionsPayload(
                month_key=key,
                transactions=[Transaction.model_validate(item) for item in items if isinstance(item, dict)],
            )

        if not isinstance(document, dict):
            return _rejected(kind, "expected a JSON object")

        if kind == TransferKind.CATEGORIES:
            categories = document.get("categories", document)
            if not isinstance(categories, dict):
                return _rejected(kind, "no categories map")
            key = _require_month_key(kind, month_key)
            return CategoriesPayload(
                month_key=key,
                categories={
                    str(name): Category.model_validate(meta)
                    for name, meta in categories.items()
                    if isinstance(meta, dict)
                },
            )

        if kind == TransferKind.PREDICTION:
            return PredictionPayload.model_validate({**document, "kind": kind})

        if not isinstance(document.get("months"), dict):
            return _rejected(kind, "no months container")
        return FullPayload(state=state_from_document(document))
    except (ValidationError, CorruptSnapshotError) as e:
        return _rejected(kind, str(e))
