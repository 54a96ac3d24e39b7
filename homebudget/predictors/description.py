"""
Description Predictor

Prefix autocomplete over every description the ledger has seen.
The list keeps insertion order and holds no two entries that differ
only by case.
"""

from typing import Optional

from homebudget.config import get_settings
from homebudget.models.budget import BudgetState
from homebudget.store.state_store import StateStore


def remember(state: BudgetState, desc: str) -> BudgetState:
    """Append `desc` (trimmed) to the description list unless already known."""
    text = (desc or "").strip()
    if not text:
        return state
    lowered = text.lower()
    if any(known.lower() == lowered for known in state.desc_list):
        return state
    return state.model_copy(update={"desc_list": state.desc_list + [text]})


class DescriptionPredictor:
    """Suggests and learns transaction descriptions."""

    def __init__(self, store: StateStore, default_limit: Optional[int] = None):
        self._store = store
        self._default_limit = default_limit or get_settings().prediction.suggestion_limit

    def suggest(self, partial: str, limit: Optional[int] = None) -> list[str]:
        """
        Up to `limit` known descriptions starting with `partial`,
        case-insensitively, in stored order.
        """
        prefix = (partial or "").strip().lower()
        if not prefix:
            return []
        limit = self._default_limit if limit is None else limit
        if limit <= 0:
            return []

        matches = []
        for known in self._store.current_snapshot().desc_list:
            if known.lower().startswith(prefix):
                matches.append(known)
                if len(matches) == limit:
                    break
        return matches

    def learn(self, desc: str) -> None:
        if not (desc or "").strip():
            return
        self._store.transform(lambda state: remember(state, desc))
