"""Monthly and daily aggregates over a user's ledger.

Calendar boundaries are taken in UTC on ``occurred_at``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, NamedTuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.transaction import TransactionType
from ..parser import DEFAULT_CATEGORY
from ..schemas.report import CategorySpending, DailySummary, MonthlyReport
from .transactions import list_transactions_between
from .wallets import list_wallets, total_balance

ZERO = Decimal("0")


class MonthlyTotals(NamedTuple):
    income: Decimal
    expense: Decimal


def month_bounds(month: int, year: int) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        return start, datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return start, datetime(year, month + 1, 1, tzinfo=timezone.utc)


def _in_month(tx: Any, month: int, year: int) -> bool:
    occurred = tx.occurred_at.astimezone(timezone.utc)
    return occurred.month == month and occurred.year == year


def compute_monthly_totals(transactions: Iterable[Any], month: int, year: int) -> MonthlyTotals:
    """Sum income and expense inside the month; transfers count for neither."""
    income = expense = ZERO
    for tx in transactions:
        if not _in_month(tx, month, year):
            continue
        if tx.type == TransactionType.INCOME:
            income += Decimal(tx.amount)
        elif tx.type == TransactionType.EXPENSE:
            expense += Decimal(tx.amount)
    return MonthlyTotals(income, expense)


def compute_category_spending(transactions: Iterable[Any], month: int, year: int) -> list[CategorySpending]:
    """Expense per category for the month, largest first."""
    totals: dict[str, Decimal] = {}
    for tx in transactions:
        if tx.type != TransactionType.EXPENSE or not _in_month(tx, month, year):
            continue
        key = tx.category or DEFAULT_CATEGORY
        totals[key] = totals.get(key, ZERO) + Decimal(tx.amount)
    return [
        CategorySpending(category=category, amount=amount)
        for category, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    ]


async def monthly_report(session: AsyncSession, user_id: UUID, month: int, year: int) -> MonthlyReport:
    start, end = month_bounds(month, year)
    transactions = await list_transactions_between(session, user_id, start, end)
    totals = compute_monthly_totals(transactions, month, year)
    return MonthlyReport(
        month=month,
        year=year,
        income=totals.income,
        expense=totals.expense,
        net=totals.income - totals.expense,
        categories=compute_category_spending(transactions, month, year),
    )


async def daily_summary(session: AsyncSession, user_id: UUID, day: date) -> DailySummary:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    transactions = await list_transactions_between(session, user_id, start, start + timedelta(days=1))
    totals = compute_monthly_totals(transactions, day.month, day.year)
    wallets = await list_wallets(session, user_id)
    return DailySummary(
        date=day,
        income=totals.income,
        expense=totals.expense,
        balance=total_balance(wallets),
        transaction_count=len(transactions),
    )
