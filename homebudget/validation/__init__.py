"""Ledger integrity package."""

from homebudget.validation.normalizer import (
    dedupe_case_insensitive,
    finite_or_zero,
    normalize,
    normalize_month,
)

__all__ = [
    "dedupe_case_insensitive",
    "finite_or_zero",
    "normalize",
    "normalize_month",
]
