"""
Balance Predictor

Estimates where a month will end up from what has been spent so far
plus what, historically, was still to come at the same point of a month.

For every other month we know how much of its final spend was still
outstanding on each day (the "remainder"). The remainders of all those
months are pooled per day-of-month into a histogram; the median of the
bucket for the target month's observation day is added to what the
target month has spent so far.

    predicted_spend    = max(0, spent_so_far + median remainder)
    predicted_leftover = incomes_total - predicted_spend

DESIGN DECISION: Pure and total. Missing data never raises; it yields
None (unknown month) or a zero remainder (no history).
"""

import calendar
from datetime import date
from typing import Mapping, NamedTuple, Optional

from homebudget.models.budget import (
    BalancePrediction,
    BudgetMonth,
    Transaction,
    month_key_of,
    parse_month_key,
)
from homebudget.store.state_store import StateStore


# Nearest-bucket search radius, in days
MAX_SEARCH_OFFSET = 31
FALLBACK_MONTH_LENGTH = 31


class RemainderPick(NamedTuple):
    remainder: float
    source_day: Optional[int]
    sample_size: int


def days_in_month(month_key: str) -> int:
    """Length of the month of `month_key`; 31 for a malformed key."""
    parsed = parse_month_key(month_key)
    if parsed is None:
        return FALLBACK_MONTH_LENGTH
    return calendar.monthrange(*parsed)[1]


def _valid_day(tx: Transaction, month_length: int) -> Optional[int]:
    day = tx.day_of_month
    if day is None or day < 1 or day > month_length:
        return None
    return day


def cumulative_spend(transactions: list[Transaction], month_length: int) -> list[float]:
    """
    Running total of signed spend by day, index 0..month_length.

    Transactions dated outside the month's days are ignored.
    """
    daily = [0.0] * (month_length + 1)
    for tx in transactions:
        day = _valid_day(tx, month_length)
        if day is not None:
            daily[day] += tx.amount

    cumulative = [0.0] * (month_length + 1)
    for day in range(1, month_length + 1):
        cumulative[day] = cumulative[day - 1] + daily[day]
    return cumulative


def median(values: list[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def remainder_histogram(
    months: Mapping[str, BudgetMonth],
    exclude_key: str,
) -> dict[int, list[float]]:
    """
    Pool, per day-of-month, how much of each other month's final spend
    was still outstanding on that day. Months with malformed keys are
    skipped.
    """
    histogram: dict[int, list[float]] = {}
    for month_key, month in months.items():
        if month_key == exclude_key or parse_month_key(month_key) is None:
            continue
        month_length = days_in_month(month_key)
        cumulative = cumulative_spend(month.transactions, month_length)
        final_spend = cumulative[month_length]
        for day in range(month_length + 1):
            histogram.setdefault(day, []).append(final_spend - cumulative[day])
    return histogram


def pick_remainder(histogram: dict[int, list[float]], observation_day: int) -> RemainderPick:
    """
    Median of the bucket at `observation_day`, else of the nearest
    non-empty bucket (earlier day first at each distance), else of the
    latest day present.
    """
    if not histogram:
        return RemainderPick(0.0, None, 0)

    def pick(day: int) -> Optional[RemainderPick]:
        bucket = histogram.get(day)
        if bucket:
            return RemainderPick(median(bucket), day, len(bucket))
        return None

    found = pick(observation_day)
    if found:
        return found

    for offset in range(1, MAX_SEARCH_OFFSET + 1):
        lower = observation_day - offset
        if lower >= 0:
            found = pick(lower)
            if found:
                return found
        found = pick(observation_day + offset)
        if found:
            return found

    last_day = max(histogram)
    return RemainderPick(median(histogram[last_day]), last_day, len(histogram[last_day]))


def observation_day(month_key: str, transactions: list[Transaction], reference_date: date) -> int:
    """
    Day up to which the month's spending counts as known.

    Past months are fully observed; the current month is observed up to
    today (or the latest dated transaction, if later); a future month up
    to its latest dated transaction, or not at all.
    """
    if parse_month_key(month_key) is None:
        return 0
    month_length = days_in_month(month_key)
    today_key = month_key_of(reference_date)
    if month_key < today_key:
        return month_length

    tx_days = [
        day for day in (_valid_day(tx, month_length) for tx in transactions)
        if day is not None
    ]
    if month_key == today_key:
        return max([min(reference_date.day, month_length)] + tx_days)
    return max(tx_days) if tx_days else 0


def predict_balance(
    target_month_key: str,
    all_months: Mapping[str, BudgetMonth],
    reference_date: date,
) -> Optional[BalancePrediction]:
    """
    Predict the end-of-month spend and leftover of `target_month_key`.

    Returns None when the month does not exist.
    """
    month = all_months.get(target_month_key)
    if month is None:
        return None

    month_length = days_in_month(target_month_key)
    observed = observation_day(target_month_key, month.transactions, reference_date)
    cumulative = cumulative_spend(month.transactions, month_length)
    spent_so_far = cumulative[min(observed, month_length)]
    incomes_total = sum(income.amount for income in month.incomes)

    picked = pick_remainder(
        remainder_histogram(all_months, target_month_key),
        observed,
    )
    predicted_spend = max(0.0, spent_so_far + picked.remainder)

    return BalancePrediction(
        predicted_spend=predicted_spend,
        predicted_leftover=incomes_total - predicted_spend,
        spent_so_far=spent_so_far,
        incomes_total=incomes_total,
        observation_day=observed,
        remainder_used_day=picked.source_day,
        sample_size=picked.sample_size,
    )


class BalancePredictor:
    """Runs `predict_balance` against the store's latest snapshot."""

    def __init__(self, store: StateStore):
        self._store = store

    def predict(
        self,
        month_key: str,
        reference_date: Optional[date] = None,
    ) -> Optional[BalancePrediction]:
        snapshot = self._store.current_snapshot()
        return predict_balance(month_key, snapshot.months, reference_date or date.today())
