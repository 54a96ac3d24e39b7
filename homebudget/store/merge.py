"""
Snapshot Merge

Reconciles two independently edited copies of the ledger. The merge is
deliberately coarse:

- months:         incoming month replaces the current one wholesale
- mapping.exact:  incoming value wins per key
- bags:           counts are summed (mapping.tokens, descMap.exact,
                  descMap.tokens)
- descList:       case-insensitive union, current entries first
- notes:          union by id, the later `time` wins
- version:        the greater of the two

ui preferences are local to an installation and are kept as they are.
"""

from homebudget.models.budget import (
    BudgetState,
    DescriptionMap,
    Note,
    PredictionMapping,
)
from homebudget.validation.normalizer import dedupe_case_insensitive


def merge_bags(
    current: dict[str, dict[str, int]],
    incoming: dict[str, dict[str, int]],
) -> dict[str, dict[str, int]]:
    """Sum two bag maps key by key and entry by entry."""
    merged = {key: dict(bag) for key, bag in current.items()}
    for key, bag in incoming.items():
        target = merged.setdefault(key, {})
        for entry, count in bag.items():
            target[entry] = target.get(entry, 0) + count
    return merged


def merge_notes(current: list[Note], incoming: list[Note]) -> list[Note]:
    by_id = {note.id: note for note in current}
    for note in incoming:
        existing = by_id.get(note.id)
        if existing is None or note.time > existing.time:
            by_id[note.id] = note
    return sorted(by_id.values(), key=lambda note: note.time, reverse=True)


def merge_states(current: BudgetState, incoming: BudgetState) -> BudgetState:
    """
    Merge `incoming` into `current`.

    Both inputs are expected to be normalized; the result is normalized
    again by the store like any other transform.
    """
    months = dict(current.months)
    months.update(incoming.months)

    return BudgetState(
        version=max(current.version, incoming.version),
        months=months,
        mapping=PredictionMapping(
            exact={**current.mapping.exact, **incoming.mapping.exact},
            tokens=merge_bags(current.mapping.tokens, incoming.mapping.tokens),
        ),
        desc_map=DescriptionMap(
            exact=merge_bags(current.desc_map.exact, incoming.desc_map.exact),
            tokens=merge_bags(current.desc_map.tokens, incoming.desc_map.tokens),
        ),
        ui=current.ui,
        desc_list=dedupe_case_insensitive(current.desc_list + incoming.desc_list),
        notes=merge_notes(current.notes, incoming.notes),
    )
