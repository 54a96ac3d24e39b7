"""
Tests for the Home Budgeting data models

Test strategy:
1. Lenient decoding: documents from other front-ends must load
2. The JSON field names of the ledger document are preserved
3. Event models carry what the audit log needs
"""

import pytest
from datetime import date
from pydantic import ValidationError

from homebudget.models import (
    BalancePrediction,
    BudgetMonth,
    BudgetState,
    Category,
    Income,
    LedgerEventBuilder,
    LedgerEventSeverity,
    LedgerEventType,
    Note,
    PredictionMapping,
    Transaction,
    month_key_of,
    parse_month_key,
)


class TestLedgerModels:
    """Tests for the month content models."""

    def test_transaction_defaults(self):
        """Test that a new transaction gets an id and no category."""
        tx = Transaction(date="2024-07-01", desc="Tesco", amount=12.4)
        assert tx.id
        assert tx.category == ""

    def test_ids_are_unique(self):
        """Test that generated ids differ."""
        assert Income().id != Income().id

    def test_numeric_strings_and_nulls_are_coerced(self):
        """Test lenient decoding of amounts and text."""
        tx = Transaction.model_validate({"amount": "12.50", "desc": None, "category": 7})
        assert tx.amount == 12.5
        assert tx.desc == ""
        assert tx.category == "7"

    def test_unparsable_amount_becomes_zero(self):
        """Test that garbage amounts decode as 0."""
        assert Transaction.model_validate({"amount": "twelve"}).amount == 0.0
        assert Category.model_validate({"budget": None}).budget == 0.0

    def test_models_are_frozen(self):
        """Test that a published model cannot be modified."""
        tx = Transaction(desc="Tesco")
        with pytest.raises(ValidationError):
            tx.amount = 3.0

    def test_day_of_month(self):
        """Test day extraction from the date string."""
        assert Transaction(date="2024-07-15").day_of_month == 15
        assert Transaction(date="15/07/2024").day_of_month is None
        assert Transaction(date="2024-07-xx").day_of_month is None

    def test_category_default_group(self):
        """Test that categories default to the Other group."""
        assert Category().group == "Other"

    def test_note_ids_are_integers(self):
        """Test that note id and time decode as integers."""
        note = Note.model_validate({"id": "1720000000000", "time": 1720000000000.0})
        assert note.id == 1720000000000
        assert note.time == 1720000000000


class TestBudgetStateDocument:
    """Tests for the root ledger document."""

    def test_document_uses_aliases(self):
        """Test that descMap/descList keep their camelCase names."""
        document = BudgetState(desc_list=["Tesco"]).to_document()
        assert document["descList"] == ["Tesco"]
        assert "descMap" in document
        assert "desc_list" not in document
        assert set(document) == {"version", "months", "mapping", "descMap", "ui", "descList", "notes"}

    def test_reads_aliases_and_ignores_unknown_fields(self):
        """Test forward-compatible decoding."""
        state = BudgetState.model_validate({
            "version": 2,
            "descList": ["Tesco"],
            "someFutureField": {"x": 1},
            "months": {
                "2024-07": {"categories": {"Food": {"budget": "100"}}},
            },
        })
        assert state.version == 2
        assert state.desc_list == ["Tesco"]
        food = state.months["2024-07"].categories["Food"]
        assert food.budget == 100.0
        assert food.group == "Other"

    def test_malformed_sections_become_empty(self):
        """Test that wrongly typed containers decode as empty ones."""
        state = BudgetState.model_validate({
            "version": None,
            "months": [],
            "mapping": "nonsense",
            "notes": {},
            "descList": "Tesco",
        })
        assert state.version == 1
        assert state.months == {}
        assert state.mapping == PredictionMapping()
        assert state.notes == []
        assert state.desc_list == []

    def test_malformed_month_becomes_empty(self):
        """Test that a month that is not an object decodes as an empty month."""
        state = BudgetState.model_validate({"months": {"2024-07": 5}})
        assert state.months["2024-07"] == BudgetMonth()

    def test_bag_counts_are_coerced(self):
        """Test bag decoding."""
        mapping = PredictionMapping.model_validate({
            "exact": {"tesco": None},
            "tokens": {"tesco": {"Food": "3", "Home": None}, "bad": []},
        })
        assert mapping.exact == {"tesco": ""}
        assert mapping.tokens == {"tesco": {"Food": 3, "Home": 0}}

    def test_accepts_model_instances(self):
        """Test that nested model instances pass through validation."""
        month = BudgetMonth(categories={"Food": Category(group="Groceries", budget=200)})
        state = BudgetState(months={"2024-07": month})
        assert state.months["2024-07"].categories["Food"].group == "Groceries"

    def test_sorted_month_keys(self):
        """Test month key ordering."""
        state = BudgetState(months={"2024-10": BudgetMonth(), "2024-02": BudgetMonth()})
        assert state.sorted_month_keys() == ["2024-02", "2024-10"]


class TestMonthKeys:
    """Tests for month key helpers."""

    def test_month_key_of(self):
        """Test formatting a date as a month key."""
        assert month_key_of(date(2024, 7, 3)) == "2024-07"

    @pytest.mark.parametrize("key,expected", [
        ("2024-07", (2024, 7)),
        ("1999-12", (1999, 12)),
        ("2024-13", None),
        ("2024-00", None),
        ("2024-7", None),
        ("July", None),
        (None, None),
    ])
    def test_parse_month_key(self, key, expected):
        """Test month key parsing."""
        assert parse_month_key(key) == expected


class TestBalancePrediction:
    """Tests for the prediction result model."""

    def test_rejects_negative_observation_day(self):
        """Test that the observation day cannot be negative."""
        with pytest.raises(ValidationError):
            BalancePrediction(
                predicted_spend=0,
                predicted_leftover=0,
                spent_so_far=0,
                incomes_total=0,
                observation_day=-1,
            )


class TestEventModels:
    """Tests for ledger event models."""

    def test_persist_failed_event(self):
        """Test the persist-failed builder."""
        event = LedgerEventBuilder.persist_failed(sequence=3, error_message="disk full")
        assert event.event_type == LedgerEventType.PERSIST_FAILED
        assert event.severity == LedgerEventSeverity.ERROR
        assert event.details == {"sequence": 3}
        assert event.error_message == "disk full"

    def test_to_log_dict(self):
        """Test conversion for structured logging."""
        event = LedgerEventBuilder.import_rejected("transactions", "no transaction list")
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "import_rejected"
        assert log_dict["severity"] == "warning"
        assert log_dict["details"] == {"kind": "transactions"}
        assert isinstance(log_dict["event_id"], str)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
