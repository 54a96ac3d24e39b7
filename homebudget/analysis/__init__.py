"""Month analysis package."""

from homebudget.analysis.totals import (
    CategorySummary,
    GroupSummary,
    MonthTotals,
    compute_month_totals,
)

__all__ = [
    "CategorySummary",
    "GroupSummary",
    "MonthTotals",
    "compute_month_totals",
]
