"""
Tests for the transfer surface: snapshot codec, CSV format and
import/export payloads.
"""

import json

import pytest

from homebudget.models import BudgetMonth, BudgetState, Category, PredictionMapping, Transaction
from homebudget.services.storage import CorruptSnapshotError
from homebudget.transfer import (
    CategoriesPayload,
    CsvFormatError,
    DataFormat,
    DataTransferError,
    FullPayload,
    PredictionPayload,
    TransactionsPayload,
    TransferKind,
    build_export_payload,
    decode_snapshot,
    detect_kind,
    encode_snapshot,
    parse_import,
    parse_transactions_csv,
    render_export,
    render_transactions_csv,
)


CSV_TEXT = (
    "Date,Description,Category,Amount\n"
    "01/07/2024,Tesco,Food,£12.40\n"
    "03/07/2024,Rent,Home,£1,234.50\n"
    '05/07/2024,"Tesco, ""Extra""",,"£2,000.00"\n'
)


@pytest.fixture
def state():
    return BudgetState(
        months={
            "2024-07": BudgetMonth(
                transactions=[
                    Transaction(id="t1", date="2024-07-01", desc="Tesco", amount=12.4, category="Food"),
                    Transaction(id="t2", date="2024-07-02", desc="Refund", amount=-0.0, category="Food"),
                ],
                categories={"Food": Category(group="Groceries", budget=200)},
            ),
        },
        mapping=PredictionMapping(exact={"tesco": "Food"}, tokens={"tesco": {"Food": 1}}),
        desc_list=["Tesco"],
    )


class TestSnapshotCodec:
    """Tests for the ledger document codec."""

    def test_encode_is_compact_json(self, state):
        """Test the durable encoding."""
        data = encode_snapshot(state)
        assert b'"descList":["Tesco"]' in data
        assert b"\n" not in data

    def test_pretty_encoding(self, state):
        """Test the full-export encoding."""
        assert b'\n  "months"' in encode_snapshot(state, pretty=True)

    def test_decode_accepts_byte_order_mark(self, state):
        """Test that a UTF-8 BOM is tolerated."""
        data = b"\xef\xbb\xbf" + encode_snapshot(state)
        assert decode_snapshot(data) == state

    @pytest.mark.parametrize("data", [b"", b"{oops", b"[]", b'"text"', b"\xff\xfe"])
    def test_decode_rejects_non_ledgers(self, data):
        """Test that anything but a JSON object is corrupt."""
        with pytest.raises(CorruptSnapshotError):
            decode_snapshot(data)


class TestCsvFormat:
    """Tests for the CSV transaction format."""

    def test_parse_rows(self):
        """Test dates, amounts and quoting."""
        transactions = parse_transactions_csv(CSV_TEXT)
        assert [tx.date for tx in transactions] == ["2024-07-01", "2024-07-03", "2024-07-05"]
        assert [tx.amount for tx in transactions] == [12.4, 1234.5, 2000.0]
        assert transactions[2].desc == 'Tesco, "Extra"'
        assert transactions[2].category == ""

    def test_header_is_case_insensitive(self):
        """Test a lowercase header."""
        transactions = parse_transactions_csv("date,description,category,amount\n01/07/2024,A,B,1")
        assert len(transactions) == 1

    def test_blank_lines_are_skipped(self):
        """Test surrounding whitespace and blank lines."""
        text = "\n  Date,Description,Category,Amount  \n\n01/07/2024,A,B,1\n\n"
        assert len(parse_transactions_csv(text)) == 1

    def test_empty_content(self):
        """Test that empty content yields no rows."""
        assert parse_transactions_csv("") == []

    def test_wrong_header(self):
        """Test header validation."""
        with pytest.raises(CsvFormatError):
            parse_transactions_csv("When,What,Amount\n01/07/2024,Tesco,1")

    def test_short_row(self):
        """Test row validation."""
        with pytest.raises(CsvFormatError):
            parse_transactions_csv("Date,Description,Category,Amount\n01/07/2024,Tesco")

    def test_unparsable_fields(self):
        """Test that bad dates and amounts degrade instead of failing."""
        tx = parse_transactions_csv("Date,Description,Category,Amount\n2024-07-01,A,B,n/a")[0]
        assert tx.date == ""
        assert tx.amount == 0.0

    def test_render(self, state):
        """Test the export layout."""
        text = render_transactions_csv(state.months["2024-07"].transactions)
        assert text.splitlines() == [
            "Date,Description,Category,Amount",
            "01/07/2024,Tesco,Food,£12.40",
            "02/07/2024,Refund,Food,£0.00",
        ]

    def test_render_quotes_commas(self):
        """Test that descriptions with commas survive."""
        text = render_transactions_csv([Transaction(date="2024-07-01", desc="A, B", amount=1)])
        assert text.splitlines()[1] == '01/07/2024,"A, B",,£1.00'
        assert parse_transactions_csv(text)[0].desc == "A, B"


class TestExport:
    """Tests for export payloads and rendering."""

    def test_transactions_json(self, state):
        """Test the bare list export."""
        document = render_export(build_export_payload(state, TransferKind.TRANSACTIONS, "2024-07"))
        assert document.file_name == "transactions-2024-07.json"
        items = json.loads(document.content)
        assert [item["id"] for item in items] == ["t1", "t2"]

    def test_transactions_csv(self, state):
        """Test the CSV export."""
        payload = build_export_payload(state, TransferKind.TRANSACTIONS, "2024-07")
        document = render_export(payload, DataFormat.CSV)
        assert document.file_name == "transactions-2024-07.csv"
        assert document.mime_type == "text/csv"
        assert document.content.decode("utf-8").startswith("Date,Description,Category,Amount")

    def test_missing_month_exports_empty(self, state):
        """Test exporting a month that does not exist."""
        payload = build_export_payload(state, TransferKind.CATEGORIES, "2030-01")
        assert json.loads(render_export(payload).content) == {"categories": {}}

    def test_categories(self, state):
        """Test the categories wrapper."""
        document = render_export(build_export_payload(state, TransferKind.CATEGORIES, "2024-07"))
        assert document.file_name == "categories.json"
        assert json.loads(document.content) == {
            "categories": {"Food": {"group": "Groceries", "budget": 200.0}}
        }

    def test_prediction_bundle(self, state):
        """Test the prediction bundle."""
        document = render_export(build_export_payload(state, TransferKind.PREDICTION))
        assert document.file_name == "prediction-map.json"
        bundle = json.loads(document.content)
        assert set(bundle) == {"mapping", "descMap", "descList"}
        assert bundle["descList"] == ["Tesco"]

    def test_full_export(self, state):
        """Test the pretty-printed full document."""
        document = render_export(build_export_payload(state, TransferKind.ALL))
        assert document.file_name == "budget-all.json"
        assert decode_snapshot(document.content) == state

    def test_month_scoped_export_requires_month(self, state):
        """Test the caller mistake."""
        with pytest.raises(DataTransferError):
            build_export_payload(state, TransferKind.TRANSACTIONS)
        with pytest.raises(DataTransferError):
            build_export_payload(state, TransferKind.CATEGORIES, "2024-13")

    def test_csv_only_for_transactions(self, state):
        """Test the format restriction."""
        with pytest.raises(DataTransferError):
            render_export(build_export_payload(state, TransferKind.ALL), DataFormat.CSV)


class TestImportParsing:
    """Tests for parse_import and kind detection."""

    @pytest.mark.parametrize("document,kind", [
        ([], TransferKind.TRANSACTIONS),
        ({"transactions": []}, TransferKind.TRANSACTIONS),
        ({"months": {}}, TransferKind.ALL),
        ({"categories": {}}, TransferKind.CATEGORIES),
        ({"descList": []}, TransferKind.PREDICTION),
        ({"mapping": {}}, TransferKind.PREDICTION),
        ({"something": 1}, None),
        ("text", None),
    ])
    def test_detect_kind(self, document, kind):
        """Test kind detection from containers."""
        assert detect_kind(document) == kind

    def test_transactions_list(self):
        """Test a bare transaction list."""
        content = json.dumps([{"date": "2024-07-01", "desc": "Tesco", "amount": 5}]).encode()
        payload = parse_import(content, month_key="2024-07")
        assert isinstance(payload, TransactionsPayload)
        assert payload.month_key == "2024-07"
        assert payload.transactions[0].desc == "Tesco"

    def test_transactions_wrapper(self):
        """Test the {transactions: [...]} wrapper."""
        content = json.dumps({"transactions": [{"desc": "Tesco"}, "junk"]}).encode()
        payload = parse_import(content, TransferKind.TRANSACTIONS, "2024-07")
        assert [tx.desc for tx in payload.transactions] == ["Tesco"]

    def test_transactions_csv(self):
        """Test CSV import."""
        payload = parse_import(CSV_TEXT.encode("utf-8"), month_key="2024-07", fmt=DataFormat.CSV)
        assert isinstance(payload, TransactionsPayload)
        assert len(payload.transactions) == 3

    def test_bad_csv_is_a_no_op(self):
        """Test that a malformed CSV parses to None."""
        assert parse_import(b"a,b\n1,2", month_key="2024-07", fmt=DataFormat.CSV) is None

    def test_categories_wrapper_and_bare_map(self):
        """Test both category shapes."""
        wrapped = parse_import(
            json.dumps({"categories": {"Food": {"group": "Groceries", "budget": 5}}}).encode(),
            month_key="2024-07",
        )
        bare = parse_import(
            json.dumps({"Food": {"group": "Groceries", "budget": 5}}).encode(),
            TransferKind.CATEGORIES,
            "2024-07",
        )
        assert isinstance(wrapped, CategoriesPayload)
        assert wrapped.categories == bare.categories
        assert wrapped.categories["Food"].budget == 5.0

    def test_prediction_bundle(self):
        """Test the prediction bundle with camelCase keys."""
        content = json.dumps({
            "mapping": {"exact": {"tesco": "Food"}, "tokens": {}},
            "descMap": {"exact": {"tesco": {"Food": 1}}},
            "descList": ["Tesco"],
        }).encode()
        payload = parse_import(content)
        assert isinstance(payload, PredictionPayload)
        assert payload.desc_map.exact == {"tesco": {"Food": 1}}
        state = payload.to_state(version=4)
        assert state.version == 4
        assert state.months == {}
        assert state.desc_list == ["Tesco"]

    def test_full_document(self, state):
        """Test a full backup."""
        payload = parse_import(encode_snapshot(state, pretty=True))
        assert isinstance(payload, FullPayload)
        assert payload.state == state

    @pytest.mark.parametrize("content,kind", [
        (b"not json", None),
        (b"{}", None),
        (b'{"foo": 1}', TransferKind.TRANSACTIONS),
        (b'{"months": []}', TransferKind.ALL),
        (b'{"categories": []}', TransferKind.CATEGORIES),
        (b"[1, 2]", TransferKind.PREDICTION),
        (b'{"mapping": "junk"}', TransferKind.PREDICTION),
    ])
    def test_structurally_invalid_content_is_none(self, content, kind):
        """Test that content without the right container parses to None."""
        assert parse_import(content, kind, "2024-07") is None

    def test_month_scoped_import_requires_month(self):
        """Test the caller mistake on import."""
        with pytest.raises(DataTransferError):
            parse_import(b"[]")
        with pytest.raises(DataTransferError):
            parse_import(CSV_TEXT.encode(), fmt=DataFormat.CSV)

    def test_csv_only_for_transactions(self):
        """Test the format restriction on import."""
        with pytest.raises(DataTransferError):
            parse_import(b"", TransferKind.CATEGORIES, "2024-07", DataFormat.CSV)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
