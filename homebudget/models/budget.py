"""
Core Data Models for Home Budgeting

These models define the schema of the single ledger document and of
the values derived from it. They are designed to:
1. Be immutable once published (frozen models)
2. Read leniently: files written by other front-ends must still load
3. Serialize to the exact JSON field names of the ledger document

DESIGN DECISION: Decoding coerces, it does not reject. A ledger with a
`null` amount or a stringly-typed budget is still the user's ledger;
the integrity normalizer takes it from there. Only a document that is
not a ledger at all fails validation, and the store treats that as an
empty ledger.
"""

import math
import re
from datetime import date
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_GROUP = "Other"

MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


# =============================================================================
# LENIENT COERCION HELPERS
# =============================================================================

def new_id() -> str:
    """Generate an identifier for incomes and transactions."""
    return str(uuid4())


def _coerce_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def _coerce_int(value: Any) -> int:
    number = _coerce_number(value)
    if not math.isfinite(number):
        return 0
    return int(number)


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _coerce_bags(value: Any) -> dict[str, dict[str, int]]:
    if not isinstance(value, dict):
        return {}
    bags = {}
    for key, bag in value.items():
        if not isinstance(bag, dict):
            continue
        bags[str(key)] = {str(entry): _coerce_int(count) for entry, count in bag.items()}
    return bags


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


class _LedgerModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# MONTH CONTENTS
# =============================================================================

class Income(_LedgerModel):
    """A single income line of a month."""

    id: str = Field(default_factory=new_id)
    name: str = ""
    amount: float = 0.0

    @field_validator('id', 'name', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _coerce_text(v)

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> float:
        return _coerce_number(v)


class Category(_LedgerModel):
    """
    A budget category of a month.

    The category name is the key of `BudgetMonth.categories`;
    the value only carries the display group and the planned budget.
    """

    group: str = DEFAULT_GROUP
    budget: float = 0.0

    @field_validator('group', mode='before')
    @classmethod
    def coerce_group(cls, v: Any) -> str:
        return _coerce_text(v)

    @field_validator('budget', mode='before')
    @classmethod
    def coerce_budget(cls, v: Any) -> float:
        return _coerce_number(v)


class Transaction(_LedgerModel):
    """
    A single spending (or refund, when negative) entry.

    `date` is kept as the "YYYY-MM-DD" string of the ledger document;
    an empty category means "not yet classified".
    """

    id: str = Field(default_factory=new_id)
    date: str = ""
    desc: str = ""
    amount: float = 0.0
    category: str = ""

    @field_validator('id', 'date', 'desc', 'category', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _coerce_text(v)

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> float:
        return _coerce_number(v)

    @property
    def day_of_month(self) -> Optional[int]:
        """Day component of `date`, or None when the date is malformed."""
        parts = self.date.split("-")
        if len(parts) != 3:
            return None
        try:
            return int(parts[2])
        except ValueError:
            return None


class BudgetMonth(_LedgerModel):
    """One budgeting period: its incomes, transactions and categories."""

    incomes: list[Income] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    categories: dict[str, Category] = Field(default_factory=dict)

    @field_validator('incomes', 'transactions', mode='before')
    @classmethod
    def coerce_list(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator('categories', mode='before')
    @classmethod
    def coerce_categories(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return {}
        return {
            str(name): meta if isinstance(meta, (dict, Category)) else {}
            for name, meta in v.items()
        }


# =============================================================================
# LEARNED MAPPINGS
# =============================================================================

class PredictionMapping(_LedgerModel):
    """
    What the category predictor has learned.

    exact:  normalized description (optionally "|<amount .2f>") -> category
    tokens: token -> bag of category occurrence counts
    """

    exact: dict[str, str] = Field(default_factory=dict)
    tokens: dict[str, dict[str, int]] = Field(default_factory=dict)

    @field_validator('exact', mode='before')
    @classmethod
    def coerce_exact(cls, v: Any) -> dict[str, str]:
        if not isinstance(v, dict):
            return {}
        return {str(key): _coerce_text(value) for key, value in v.items()}

    @field_validator('tokens', mode='before')
    @classmethod
    def coerce_tokens(cls, v: Any) -> dict[str, dict[str, int]]:
        return _coerce_bags(v)


class DescriptionMap(_LedgerModel):
    """
    Secondary description <-> category co-occurrence index.

    exact:  lowercase description -> bag of categories
    tokens: category -> bag of descriptions

    Maintained on every learn; no predictor reads it.
    """

    exact: dict[str, dict[str, int]] = Field(default_factory=dict)
    tokens: dict[str, dict[str, int]] = Field(default_factory=dict)

    @field_validator('exact', 'tokens', mode='before')
    @classmethod
    def coerce_bags(cls, v: Any) -> dict[str, dict[str, int]]:
        return _coerce_bags(v)


class UiPreferences(_LedgerModel):
    """Collapsed category groups per month. Only `True` entries are kept."""

    collapsed: dict[str, dict[str, bool]] = Field(default_factory=dict)

    @field_validator('collapsed', mode='before')
    @classmethod
    def coerce_collapsed(cls, v: Any) -> dict[str, dict[str, bool]]:
        if not isinstance(v, dict):
            return {}
        return {
            str(month_key): {str(group): _coerce_flag(flag) for group, flag in groups.items()}
            for month_key, groups in v.items()
            if isinstance(groups, dict)
        }


class Note(_LedgerModel):
    """A free-form note. `id` and `time` are epoch milliseconds."""

    id: int = 0
    desc: str = ""
    data: str = ""
    time: int = 0

    @field_validator('id', 'time', mode='before')
    @classmethod
    def coerce_int(cls, v: Any) -> int:
        return _coerce_int(v)

    @field_validator('desc', 'data', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _coerce_text(v)


# =============================================================================
# ROOT AGGREGATE
# =============================================================================

class BudgetState(_LedgerModel):
    """
    The whole ledger.

    CRITICAL: One instance per installation, owned by the StateStore.
    Nothing outside the store replaces it; everything else reads the
    latest snapshot and asks the store for a transform.
    """

    version: int = 1
    months: dict[str, BudgetMonth] = Field(default_factory=dict)
    mapping: PredictionMapping = Field(default_factory=PredictionMapping)
    desc_map: DescriptionMap = Field(default_factory=DescriptionMap, alias="descMap")
    ui: UiPreferences = Field(default_factory=UiPreferences)
    desc_list: list[str] = Field(default_factory=list, alias="descList")
    notes: list[Note] = Field(default_factory=list)

    @field_validator('version', mode='before')
    @classmethod
    def coerce_version(cls, v: Any) -> int:
        return _coerce_int(v) if v is not None else 1

    @field_validator('months', mode='before')
    @classmethod
    def coerce_months(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return {}
        return {
            str(key): month if isinstance(month, (dict, BudgetMonth)) else {}
            for key, month in v.items()
        }

    @field_validator('mapping', 'desc_map', 'ui', mode='before')
    @classmethod
    def coerce_section(cls, v: Any) -> Any:
        if isinstance(v, BaseModel):
            return v
        return v if isinstance(v, dict) else {}

    @field_validator('desc_list', mode='before')
    @classmethod
    def coerce_desc_list(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [str(item) for item in v if item is not None]

    @field_validator('notes', mode='before')
    @classmethod
    def coerce_notes(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return []
        return [note for note in v if isinstance(note, (dict, Note))]

    def to_document(self) -> dict:
        """The JSON-ready ledger document (camelCase field names)."""
        return self.model_dump(mode="json", by_alias=True)

    def sorted_month_keys(self) -> list[str]:
        return sorted(self.months)


# =============================================================================
# MONTH KEYS
# =============================================================================

def month_key_of(day: date) -> str:
    """The "YYYY-MM" key of the month containing `day`."""
    return f"{day.year:04d}-{day.month:02d}"


def parse_month_key(month_key: Any) -> Optional[tuple[int, int]]:
    """
    Parse a "YYYY-MM" key into (year, month).

    Returns None for anything that is not a well-formed key with a
    month between 01 and 12.
    """
    if not isinstance(month_key, str):
        return None
    match = MONTH_KEY_PATTERN.match(month_key)
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


# =============================================================================
# PREDICTION RESULTS
# =============================================================================

class BalancePrediction(_LedgerModel):
    """
    Estimated end-of-month position of one month.

    remainder_used_day is the day-of-month bucket of the historical
    remainder histogram the estimate came from (None without history).
    """

    predicted_spend: float
    predicted_leftover: float
    spent_so_far: float
    incomes_total: float
    observation_day: int = Field(ge=0)
    remainder_used_day: Optional[int] = None
    sample_size: int = Field(default=0, ge=0)
