"""
Ledger Document Codec

Converts between BudgetState snapshots and the bytes of the ledger JSON
document. The same schema is used for the durable snapshot and for the
full export; only the indentation differs.

Unknown fields are ignored on read so newer documents still load.
"""

import json
from typing import Any, Union

from pydantic import ValidationError

from homebudget.models.budget import BudgetState
from homebudget.services.storage.interface import CorruptSnapshotError


def encode_snapshot(state: BudgetState, pretty: bool = False) -> bytes:
    """Encode a snapshot as a UTF-8 JSON document."""
    document = state.to_document()
    if pretty:
        text = json.dumps(document, indent=2, ensure_ascii=False)
    else:
        text = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return text.encode("utf-8")


def load_json(data: Union[bytes, str]) -> Any:
    """
    Parse raw JSON content.

    Raises:
        CorruptSnapshotError: If the content is not valid UTF-8 JSON
    """
    try:
        text = data.decode("utf-8-sig") if isinstance(data, bytes) else data
        return json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptSnapshotError(f"Not a JSON document: {e}")


def state_from_document(document: Any) -> BudgetState:
    """
    Build a snapshot from an already-parsed JSON document.

    Raises:
        CorruptSnapshotError: If the document is not a ledger object
    """
    if not isinstance(document, dict):
        raise CorruptSnapshotError(
            f"Ledger document must be a JSON object, got {type(document).__name__}"
        )
    try:
        return BudgetState.model_validate(document)
    except ValidationError as e:
        raise CorruptSnapshotError(f"Ledger document does not match the schema: {e}")


def decode_snapshot(data: Union[bytes, str]) -> BudgetState:
    """
    Decode a ledger document. The result is not yet normalized.

    Raises:
        CorruptSnapshotError: If the data is not a ledger document
    """
    return state_from_document(load_json(data))
