"""
Month Totals

Budget versus actual for one month, per category and per group.
"Actual" is the signed sum of the month's transactions filed under a
category; transactions filed under a name the month has no category for
count towards nothing.
"""

from typing import Optional

from pydantic import BaseModel, Field

from homebudget.models.budget import DEFAULT_GROUP, BudgetMonth


class CategorySummary(BaseModel):
    name: str
    group: str
    budget: float
    actual: float

    @property
    def difference(self) -> float:
        return self.budget - self.actual


class GroupSummary(BaseModel):
    name: str
    budget: float
    actual: float

    @property
    def difference(self) -> float:
        return self.budget - self.actual


class MonthTotals(BaseModel):
    """Totals of one month; every figure is 0 for a missing month."""

    total_income: float = 0.0
    budget_total: float = 0.0
    actual_total: float = 0.0
    leftover_actual: float = 0.0
    leftover_budget: float = 0.0
    categories: list[CategorySummary] = Field(default_factory=list)
    groups: list[GroupSummary] = Field(default_factory=list)


def compute_month_totals(month: Optional[BudgetMonth]) -> MonthTotals:
    if month is None:
        return MonthTotals()

    total_income = sum(income.amount for income in month.incomes)

    actual_per_category: dict[str, float] = {}
    for tx in month.transactions:
        actual_per_category[tx.category] = actual_per_category.get(tx.category, 0.0) + tx.amount

    categories = [
        CategorySummary(
            name=name,
            group=meta.group.strip() or DEFAULT_GROUP,
            budget=meta.budget,
            actual=actual_per_category.get(name, 0.0),
        )
        for name, meta in sorted(month.categories.items(), key=lambda item: item[0].lower())
    ]

    by_group: dict[str, list[CategorySummary]] = {}
    for summary in categories:
        by_group.setdefault(summary.group, []).append(summary)
    groups = sorted(
        (
            GroupSummary(
                name=name,
                budget=sum(item.budget for item in members),
                actual=sum(item.actual for item in members),
            )
            for name, members in by_group.items()
        ),
        key=lambda group: group.name.lower(),
    )

    budget_total = sum(item.budget for item in categories)
    actual_total = sum(item.actual for item in categories)

    return MonthTotals(
        total_income=total_income,
        budget_total=budget_total,
        actual_total=actual_total,
        leftover_actual=total_income - actual_total,
        leftover_budget=total_income - budget_total,
        categories=categories,
        groups=groups,
    )
