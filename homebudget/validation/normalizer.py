"""
Ledger Integrity Normalizer

DESIGN DECISION: Unlike input validation, which reports problems for a
human to fix, the ledger normalizer silently repairs. It runs after every
transform and after every load, so it must never reject a ledger and
must reach a fixed point in one pass:

    normalize(normalize(state)) == normalize(state)

Rules enforced:
1. Free text (income names, transaction desc/category, category names
   and groups, note descriptions, exact-map targets) is trimmed
2. Non-finite amounts and budgets become 0
3. A blank group becomes "Other"
4. Bag counts <= 0 are dropped, and so are bags left empty
5. Exact-map entries pointing at a blank category are dropped
6. descList is unique under case-insensitive comparison, first seen wins
7. ui.collapsed keeps only True flags and no empty months
8. Notes are ordered by time, newest first

Months are additionally kept ordered by month key.
"""

import math

from homebudget.models.budget import (
    DEFAULT_GROUP,
    BudgetMonth,
    BudgetState,
    Category,
    DescriptionMap,
    Income,
    Note,
    PredictionMapping,
    Transaction,
    UiPreferences,
)


def finite_or_zero(value: float) -> float:
    """Coerce NaN and +/-infinity to 0."""
    return value if math.isfinite(value) else 0.0


def dedupe_case_insensitive(items: list[str]) -> list[str]:
    """Trim, drop blanks, and keep the first of any case-insensitive duplicates."""
    seen = set()
    result = []
    for item in items:
        text = item.strip()
        if not text:
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(text)
    return result


def _clean_bags(bags: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
    cleaned = {}
    for key, bag in bags.items():
        kept = {entry: count for entry, count in bag.items() if count > 0}
        if kept:
            cleaned[key] = kept
    return cleaned


def _normalize_income(income: Income) -> Income:
    return Income(
        id=income.id,
        name=income.name.strip(),
        amount=finite_or_zero(income.amount),
    )


def _normalize_transaction(tx: Transaction) -> Transaction:
    return Transaction(
        id=tx.id,
        date=tx.date.strip(),
        desc=tx.desc.strip(),
        amount=finite_or_zero(tx.amount),
        category=tx.category.strip(),
    )


def _normalize_category(category: Category) -> Category:
    return Category(
        group=category.group.strip() or DEFAULT_GROUP,
        budget=finite_or_zero(category.budget),
    )


def normalize_month(month: BudgetMonth) -> BudgetMonth:
    """Apply the per-month rules. Later duplicates of a trimmed category name win."""
    categories = {}
    for name, category in month.categories.items():
        key = name.strip()
        if key:
            categories[key] = _normalize_category(category)
    return BudgetMonth(
        incomes=[_normalize_income(income) for income in month.incomes],
        transactions=[_normalize_transaction(tx) for tx in month.transactions],
        categories=categories,
    )


def _normalize_mapping(mapping: PredictionMapping) -> PredictionMapping:
    exact = {}
    for key, category in mapping.exact.items():
        target = category.strip()
        if target:
            exact[key] = target
    return PredictionMapping(exact=exact, tokens=_clean_bags(mapping.tokens))


def _normalize_desc_map(desc_map: DescriptionMap) -> DescriptionMap:
    return DescriptionMap(
        exact=_clean_bags(desc_map.exact),
        tokens=_clean_bags(desc_map.tokens),
    )


def _normalize_ui(ui: UiPreferences) -> UiPreferences:
    collapsed = {}
    for month_key, groups in ui.collapsed.items():
        kept = {group: True for group, flag in groups.items() if flag}
        if kept:
            collapsed[month_key] = kept
    return UiPreferences(collapsed=collapsed)


def _normalize_notes(notes: list[Note]) -> list[Note]:
    cleaned = [
        Note(id=note.id, desc=note.desc.strip(), data=note.data, time=note.time)
        for note in notes
    ]
    return sorted(cleaned, key=lambda note: note.time, reverse=True)


def normalize(state: BudgetState) -> BudgetState:
    """
    Return a new snapshot satisfying every ledger invariant.

    Pure: the input snapshot is not modified.
    """
    return BudgetState(
        version=state.version,
        months={key: normalize_month(state.months[key]) for key in sorted(state.months)},
        mapping=_normalize_mapping(state.mapping),
        desc_map=_normalize_desc_map(state.desc_map),
        ui=_normalize_ui(state.ui),
        desc_list=dedupe_case_insensitive(state.desc_list),
        notes=_normalize_notes(state.notes),
    )
