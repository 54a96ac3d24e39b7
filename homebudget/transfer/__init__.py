"""
Transfer Package

Snapshot codec, import/export payload variants and the CSV transaction
format.
"""

from homebudget.transfer.codec import (
    decode_snapshot,
    encode_snapshot,
    load_json,
    state_from_document,
)
from homebudget.transfer.csv_format import (
    CSV_HEADER,
    CsvFormatError,
    parse_transactions_csv,
    render_transactions_csv,
)
from homebudget.transfer.payloads import (
    CategoriesPayload,
    DataFormat,
    DataTransferError,
    ExportDocument,
    FullPayload,
    ImportSummary,
    PredictionPayload,
    TransactionsPayload,
    TransferKind,
    TransferPayload,
    build_export_payload,
    detect_kind,
    parse_import,
    render_export,
)

__all__ = [
    # Codec
    "decode_snapshot",
    "encode_snapshot",
    "load_json",
    "state_from_document",
    # CSV
    "CSV_HEADER",
    "CsvFormatError",
    "parse_transactions_csv",
    "render_transactions_csv",
    # Payloads
    "CategoriesPayload",
    "DataFormat",
    "DataTransferError",
    "ExportDocument",
    "FullPayload",
    "ImportSummary",
    "PredictionPayload",
    "TransactionsPayload",
    "TransferKind",
    "TransferPayload",
    "build_export_payload",
    "detect_kind",
    "parse_import",
    "render_export",
]
