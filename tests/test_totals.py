"""
Tests for month totals
"""

import pytest

from homebudget.analysis import compute_month_totals
from homebudget.models import BudgetMonth


@pytest.fixture
def month():
    return BudgetMonth.model_validate({
        "incomes": [{"name": "Salary", "amount": 2000}, {"name": "Gift", "amount": 100}],
        "categories": {
            "rent": {"group": "Bills", "budget": 900},
            "Food": {"group": "Living", "budget": 300},
            "Energy": {"group": "Bills", "budget": 120},
            "Misc": {"group": "", "budget": 50},
        },
        "transactions": [
            {"desc": "Landlord", "amount": 900, "category": "rent"},
            {"desc": "Tesco", "amount": 80, "category": "Food"},
            {"desc": "Refund", "amount": -20, "category": "Food"},
            {"desc": "Octopus", "amount": 130, "category": "Energy"},
            {"desc": "Lost", "amount": 999, "category": "Gone"},
            {"desc": "Unsorted", "amount": 15, "category": ""},
        ],
    })


class TestMonthTotals:
    """Tests for compute_month_totals."""

    def test_headline_totals(self, month):
        """Test income, budget and actual sums."""
        totals = compute_month_totals(month)
        assert totals.total_income == pytest.approx(2100.0)
        assert totals.budget_total == pytest.approx(1370.0)
        assert totals.actual_total == pytest.approx(1090.0)
        assert totals.leftover_actual == pytest.approx(1010.0)
        assert totals.leftover_budget == pytest.approx(730.0)

    def test_categories_sorted_case_insensitively(self, month):
        """Test per-category rows."""
        totals = compute_month_totals(month)
        assert [c.name for c in totals.categories] == ["Energy", "Food", "Misc", "rent"]
        food = totals.categories[1]
        assert food.actual == pytest.approx(60.0)
        assert food.difference == pytest.approx(240.0)
        assert totals.categories[0].difference == pytest.approx(-10.0)

    def test_groups(self, month):
        """Test per-group rows, with a blank group shown as Other."""
        totals = compute_month_totals(month)
        assert [(g.name, g.budget, g.actual) for g in totals.groups] == [
            ("Bills", 1020.0, 1030.0),
            ("Living", 300.0, 60.0),
            ("Other", 50.0, 0.0),
        ]

    def test_missing_month(self):
        """Test that a missing month totals to zero."""
        totals = compute_month_totals(None)
        assert totals.total_income == 0
        assert totals.categories == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
