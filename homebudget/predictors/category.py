"""
Category Predictor

Suggests a category for a free-text description, learning from every
categorized transaction.

Lookup order (first hit that is a known category wins):
1. exact["<description>|<amount .2f>"]  - same payee, same amount
2. exact["<description>"]               - same payee
3. token bags                           - summed per category over the
                                          description's words

DESIGN DECISION: Equal token scores resolve to the alphabetically first
category name, so a prediction never depends on dictionary order.
"""

import math
import re
from collections import Counter
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Iterable, Optional

from homebudget.models.budget import (
    BudgetState,
    DescriptionMap,
    PredictionMapping,
    Transaction,
)
from homebudget.predictors.description import DescriptionPredictor, remember
from homebudget.store.state_store import StateStore


_NON_TOKEN = re.compile(r"[^a-z0-9\s]")
_CENTS = Decimal("0.01")
# Wide enough for any finite float quantized to cents
_CENTS_CONTEXT = Context(prec=400)


def normalize_description(desc: str) -> str:
    return (desc or "").strip().lower()


def tokenize(text: str) -> list[str]:
    """Lowercase words made of a-z and 0-9; everything else separates."""
    return _NON_TOKEN.sub(" ", (text or "").lower()).split()


def _is_finite(amount: Optional[float]) -> bool:
    return amount is not None and math.isfinite(amount)


def amount_key(base: str, amount: float) -> str:
    """
    Exact-map key for a description seen with a specific amount.

    The amount is rounded half away from zero from its exact binary value,
    so keys agree with ledgers written by the JavaScript front-end
    (`toFixed(2)`): 0.125 -> "0.13", 1.005 -> "1.00".
    """
    if amount == 0:
        amount = 0.0
    cents = Decimal(amount).quantize(_CENTS, rounding=ROUND_HALF_UP, context=_CENTS_CONTEXT)
    return f"{base}|{cents}"


def _bump(bags: dict[str, dict[str, int]], key: str, entry: str) -> None:
    bag = bags.setdefault(key, {})
    bag[entry] = bag.get(entry, 0) + 1


def learn_mapping(
    state: BudgetState,
    desc: str,
    category: str,
    amount: Optional[float] = None,
) -> BudgetState:
    """Record that `desc` (optionally at `amount`) belongs to `category`."""
    base = normalize_description(desc)
    category = (category or "").strip()
    if not base or not category:
        return state

    exact = dict(state.mapping.exact)
    exact[amount_key(base, amount) if _is_finite(amount) else base] = category

    tokens = {token: dict(bag) for token, bag in state.mapping.tokens.items()}
    for token in tokenize(base):
        _bump(tokens, token, category)

    text = desc.strip()
    desc_exact = {key: dict(bag) for key, bag in state.desc_map.exact.items()}
    desc_tokens = {key: dict(bag) for key, bag in state.desc_map.tokens.items()}
    _bump(desc_tokens, category, text)
    _bump(desc_exact, text.lower(), category)

    learned = state.model_copy(update={
        "mapping": PredictionMapping(exact=exact, tokens=tokens),
        "desc_map": DescriptionMap(exact=desc_exact, tokens=desc_tokens),
    })
    return remember(learned, text)


class CategoryPredictor:
    """Predicts and learns description -> category associations."""

    def __init__(self, store: StateStore, descriptions: DescriptionPredictor):
        self._store = store
        self._descriptions = descriptions

    def predict(
        self,
        desc: str,
        known_categories: Iterable[str],
        amount: Optional[float] = None,
    ) -> str:
        """
        Best known category for `desc`, or "" when nothing matches.
        """
        base = normalize_description(desc)
        if not base:
            return ""
        known = set(known_categories)
        mapping = self._store.current_snapshot().mapping

        if _is_finite(amount):
            hit = mapping.exact.get(amount_key(base, amount))
            if hit in known:
                return hit

        hit = mapping.exact.get(base)
        if hit in known:
            return hit

        scores = Counter()
        for token in tokenize(base):
            scores.update(mapping.tokens.get(token, {}))
        ranked = sorted(
            (category for category in scores if category in known),
            key=lambda category: (-scores[category], category),
        )
        return ranked[0] if ranked else ""

    def learn(self, desc: str, category: str, amount: Optional[float] = None) -> None:
        """Learn one association. Also remembers the description for autocomplete."""
        if not (desc or "").strip() or not (category or "").strip():
            return
        self._store.transform(lambda state: learn_mapping(state, desc, category, amount))

    def record_transaction(self, tx: Transaction) -> None:
        """Learn from a saved transaction; uncategorized ones only feed autocomplete."""
        if tx.category.strip():
            self.learn(tx.desc, tx.category, tx.amount)
        else:
            self._descriptions.learn(tx.desc)

    def pin_mapping(self, desc: str, category: str) -> None:
        """Amount-independent user override for `desc`."""
        self.learn(desc, category, amount=None)
