"""
Derived Views

Pure functions from the family document to the numbers shown on the
dashboard and reports. Nothing is cached; every render recomputes.

DESIGN DECISION: Balance is all-time unless a period is passed. The
dashboard shows the current month explicitly, the statement page shows
all time; callers choose.

All sums use Decimal over the stored float amounts to avoid cents drifting
(0.1 + 0.2) and return floats rounded to cents.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from semesmart.models.family import Category, Goal, Transaction, UserData

ALL_MEMBERS = "todos"
TOP_CATEGORY_LIMIT = 5


@dataclass(frozen=True)
class MonthPeriod:
    """A calendar month."""

    year: int
    month: int

    @classmethod
    def current(cls, today: Optional[date] = None) -> "MonthPeriod":
        today = today or date.today()
        return cls(today.year, today.month)

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month


@dataclass(frozen=True)
class CategoryTotal:
    category: Category
    total: float


@dataclass(frozen=True)
class GoalSummary:
    goal: Goal
    progress: float


@dataclass(frozen=True)
class DashboardSummary:
    """Everything the home screen shows."""

    income: float
    expenses: float
    balance: float
    top_categories: list[CategoryTotal]
    featured_goal: Optional[GoalSummary]
    period: Optional[MonthPeriod] = None


def _sum(amounts: Iterable[float]) -> float:
    total = sum((Decimal(str(amount)) for amount in amounts), Decimal("0"))
    return float(round(total, 2))


def in_period(transactions: Iterable[Transaction], period: Optional[MonthPeriod]) -> list[Transaction]:
    if period is None:
        return list(transactions)
    return [tx for tx in transactions if period.contains(tx.date)]


def expense_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Negative amounts, in their stored order."""
    return [tx for tx in transactions if tx.amount < 0]


def balance(transactions: Iterable[Transaction], period: Optional[MonthPeriod] = None) -> float:
    """Sum of signed amounts (all-time unless a period is given)."""
    return _sum(tx.amount for tx in in_period(transactions, period))


def total_income(transactions: Iterable[Transaction], period: Optional[MonthPeriod] = None) -> float:
    return _sum(tx.amount for tx in in_period(transactions, period) if tx.amount > 0)


def total_expenses(transactions: Iterable[Transaction], period: Optional[MonthPeriod] = None) -> float:
    """Absolute sum of negative amounts."""
    return _sum(-tx.amount for tx in in_period(transactions, period) if tx.amount < 0)


def expenses_by_category(
    transactions: Iterable[Transaction],
    period: Optional[MonthPeriod] = None,
) -> list[CategoryTotal]:
    """
    Expense totals per category, largest first.

    Only categories with at least one expense appear. Ties keep the order
    in which the categories were first seen.
    """
    totals: dict[Category, Decimal] = {}
    for tx in in_period(transactions, period):
        if tx.amount < 0:
            totals[tx.category] = totals.get(tx.category, Decimal("0")) + abs(Decimal(str(tx.amount)))

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(category, float(round(total, 2))) for category, total in ranked]


def goal_progress(goal: Goal) -> float:
    """
    Percent saved. Not capped at 100; a zero target gives 0.0.
    """
    if goal.target_amount == 0:
        return 0.0
    return goal.current_amount / goal.target_amount * 100


def filter_transactions(
    transactions: Iterable[Transaction],
    member_id: str = ALL_MEMBERS,
) -> list[Transaction]:
    """
    Transactions of one member ("todos" for everyone), newest date first.
    """
    selected = [
        tx for tx in transactions
        if member_id == ALL_MEMBERS or tx.member_id == member_id
    ]
    return sorted(selected, key=lambda tx: tx.date, reverse=True)


def build_dashboard(data: UserData, period: Optional[MonthPeriod] = None) -> DashboardSummary:
    """
    Income, expenses, balance, the top five expense categories and
    the first goal's progress.
    """
    transactions = data.transactions
    featured = None
    if data.goals:
        featured = GoalSummary(goal=data.goals[0], progress=goal_progress(data.goals[0]))

    return DashboardSummary(
        income=total_income(transactions, period),
        expenses=total_expenses(transactions, period),
        balance=balance(transactions, period),
        top_categories=expenses_by_category(transactions, period)[:TOP_CATEGORY_LIMIT],
        featured_goal=featured,
        period=period,
    )
