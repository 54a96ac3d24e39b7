"""Ledger ownership: the state store and snapshot merging."""

from homebudget.store.merge import merge_bags, merge_notes, merge_states
from homebudget.store.state_store import PersistenceError, StateStore

__all__ = [
    "PersistenceError",
    "StateStore",
    "merge_bags",
    "merge_notes",
    "merge_states",
]
