"""Derived views over the family document."""

from semesmart.queries.views import (
    ALL_MEMBERS,
    CategoryTotal,
    DashboardSummary,
    GoalSummary,
    MonthPeriod,
    balance,
    build_dashboard,
    expense_transactions,
    expenses_by_category,
    filter_transactions,
    goal_progress,
    total_expenses,
    total_income,
)

__all__ = [
    "ALL_MEMBERS",
    "CategoryTotal",
    "DashboardSummary",
    "GoalSummary",
    "MonthPeriod",
    "balance",
    "build_dashboard",
    "expense_transactions",
    "expenses_by_category",
    "filter_transactions",
    "goal_progress",
    "total_expenses",
    "total_income",
]
