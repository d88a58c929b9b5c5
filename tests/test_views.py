"""Tests for derived views."""

from datetime import date

import pytest

from semesmart.models import Category, Goal, new_user_data
from semesmart.queries import (
    ALL_MEMBERS,
    CategoryTotal,
    MonthPeriod,
    balance,
    build_dashboard,
    expenses_by_category,
    filter_transactions,
    goal_progress,
    total_expenses,
    total_income,
)

from support import make_transaction


@pytest.fixture
def sample():
    return [
        make_transaction(-50, Category.MERCADO, tx_id="t1"),
        make_transaction(-30, Category.MERCADO, tx_id="t2"),
        make_transaction(-20, Category.TRANSPORTE, tx_id="t3"),
        make_transaction(1000, Category.ENTRADA, tx_id="t4"),
    ]


class TestTotals:
    """Tests for sums over transactions."""

    def test_category_breakdown(self, sample):
        assert expenses_by_category(sample) == [
            CategoryTotal(Category.MERCADO, 80.0),
            CategoryTotal(Category.TRANSPORTE, 20.0),
        ]

    def test_total_expenses_and_balance(self, sample):
        assert total_expenses(sample) == 100.0
        assert total_income(sample) == 1000.0
        assert balance(sample) == 900.0

    def test_no_cent_drift(self):
        transactions = [make_transaction(-0.1, tx_id="a"), make_transaction(-0.2, tx_id="b")]
        assert total_expenses(transactions) == 0.3

    def test_empty(self):
        assert balance([]) == 0.0
        assert expenses_by_category([]) == []

    def test_period_scoping(self):
        transactions = [
            make_transaction(-40, tx_id="may", when=date(2024, 5, 31)),
            make_transaction(-60, tx_id="jun", when=date(2024, 6, 1)),
        ]
        may = MonthPeriod(2024, 5)
        assert balance(transactions, may) == -40.0
        assert balance(transactions) == -100.0
        assert may.end == date(2024, 5, 31)


class TestGoalProgress:
    """Tests for goal percentages."""

    def test_percent(self):
        assert goal_progress(Goal(id="g", name="X", target_amount=200, current_amount=50)) == 25.0

    def test_not_capped(self):
        assert goal_progress(Goal(id="g", name="X", target_amount=100, current_amount=150)) == 150.0

    def test_zero_target(self):
        assert goal_progress(Goal(id="g", name="X", target_amount=0, current_amount=10)) == 0.0


class TestFilter:
    """Tests for the member filter."""

    def test_all_members_sorted_by_date(self):
        transactions = [
            make_transaction(-1, tx_id="old", when=date(2024, 1, 1)),
            make_transaction(-1, tx_id="new", when=date(2024, 3, 1), member_id="m-leo"),
            make_transaction(-1, tx_id="mid", when=date(2024, 2, 1)),
        ]
        assert [t.id for t in filter_transactions(transactions, ALL_MEMBERS)] == ["new", "mid", "old"]

    def test_single_member(self):
        transactions = [
            make_transaction(-1, tx_id="a"),
            make_transaction(-1, tx_id="b", member_id="m-leo"),
        ]
        assert [t.id for t in filter_transactions(transactions, "m-leo")] == ["b"]


class TestDashboard:
    """Tests for the home screen summary."""

    def test_top_five_and_first_goal(self):
        categories = [Category.MERCADO, Category.LAZER, Category.CONTAS,
                      Category.SAUDE, Category.DIZIMO, Category.EDUCACAO]
        transactions = [
            make_transaction(-(i + 1) * 10, category, tx_id=f"t{i}")
            for i, category in enumerate(categories)
        ]
        data = new_user_data("Ana").model_copy(update={
            "transactions": transactions,
            "goals": [
                Goal(id="g1", name="Viagem", target_amount=100, current_amount=40),
                Goal(id="g2", name="Carro", target_amount=100),
            ],
        })

        summary = build_dashboard(data)

        assert len(summary.top_categories) == 5
        assert summary.top_categories[0].category is Category.EDUCACAO
        assert Category.MERCADO not in [c.category for c in summary.top_categories]
        assert summary.featured_goal.goal.id == "g1"
        assert summary.featured_goal.progress == 40.0
        assert summary.expenses == 210.0

    def test_no_goals(self):
        assert build_dashboard(new_user_data()).featured_goal is None
