"""
Predictors Package

Deterministic, explainable heuristics evaluated against the latest
ledger snapshot:
- BalancePredictor: end-of-month spend and leftover
- CategoryPredictor: description -> category
- DescriptionPredictor: description autocomplete
"""

from homebudget.predictors.balance import (
    BalancePredictor,
    cumulative_spend,
    days_in_month,
    median,
    observation_day,
    pick_remainder,
    predict_balance,
    remainder_histogram,
)
from homebudget.predictors.category import (
    CategoryPredictor,
    amount_key,
    learn_mapping,
    tokenize,
)
from homebudget.predictors.description import DescriptionPredictor, remember

__all__ = [
    "BalancePredictor",
    "CategoryPredictor",
    "DescriptionPredictor",
    "amount_key",
    "cumulative_spend",
    "days_in_month",
    "learn_mapping",
    "median",
    "observation_day",
    "pick_remainder",
    "predict_balance",
    "remainder_histogram",
    "remember",
    "tokenize",
]
