"""
Data Models Package

This package contains all Pydantic models used in Home Budgeting.
The ledger document and everything derived from it conform to these schemas.
"""

from homebudget.models.budget import (
    DEFAULT_GROUP,
    BalancePrediction,
    BudgetMonth,
    BudgetState,
    Category,
    DescriptionMap,
    Income,
    Note,
    PredictionMapping,
    Transaction,
    UiPreferences,
    month_key_of,
    new_id,
    parse_month_key,
)
from homebudget.models.events import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "DEFAULT_GROUP",
    "BalancePrediction",
    "BudgetMonth",
    "BudgetState",
    "Category",
    "DescriptionMap",
    "Income",
    "Note",
    "PredictionMapping",
    "Transaction",
    "UiPreferences",
    "month_key_of",
    "new_id",
    "parse_month_key",
    # Event models
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventSeverity",
    "LedgerEventType",
]
