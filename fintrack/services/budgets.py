from __future__ import annotations

from datetime import timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.budget import Budget
from ..models.transaction import TransactionType
from ..schemas.budget import BudgetCreate, BudgetRead, BudgetStatus, BudgetUpdate
from .reports import compute_category_spending, month_bounds
from .transactions import list_transactions_between

# Spending levels (percent of the limit) that trigger a warning when crossed.
WARNING_THRESHOLDS: tuple[int, ...] = (80, 100)


async def list_budgets(session: AsyncSession, user_id: UUID, *, month: int, year: int) -> list[Budget]:
    result = await session.execute(
        select(Budget)
        .where(Budget.user_id == user_id, Budget.month == month, Budget.year == year)
        .order_by(Budget.category.asc())
    )
    return list(result.scalars().all())


async def get_budget(session: AsyncSession, budget_id: UUID) -> Optional[Budget]:
    return await session.get(Budget, budget_id)


async def find_budget(
    session: AsyncSession, user_id: UUID, category: str, *, month: int, year: int
) -> Optional[Budget]:
    result = await session.execute(
        select(Budget).where(
            Budget.user_id == user_id,
            Budget.category == category,
            Budget.month == month,
            Budget.year == year,
        )
    )
    return result.scalars().first()


async def create_budget(session: AsyncSession, payload: BudgetCreate) -> Budget:
    existing = await find_budget(
        session, payload.user_id, payload.category, month=payload.month, year=payload.year
    )
    if existing:
        raise ValueError("Budget for this category and month already exists")
    budget = Budget(
        category=payload.category,
        limit_amount=payload.limit_amount,
        currency=payload.currency,
        month=payload.month,
        year=payload.year,
        user_id=payload.user_id,
    )
    session.add(budget)
    await session.commit()
    await session.refresh(budget)
    return budget


async def update_budget(session: AsyncSession, budget: Budget, payload: BudgetUpdate) -> Budget:
    if payload.category is not None and payload.category != budget.category:
        clash = await find_budget(
            session, budget.user_id, payload.category, month=budget.month, year=budget.year
        )
        if clash:
            raise ValueError("Budget for this category and month already exists")
        budget.category = payload.category
    if payload.limit_amount is not None:
        budget.limit_amount = payload.limit_amount
    await session.commit()
    await session.refresh(budget)
    return budget


async def delete_budget(session: AsyncSession, budget: Budget) -> None:
    await session.delete(budget)
    await session.commit()


def _percentage(spent: Decimal, limit: Decimal) -> int:
    if limit <= 0:
        return 0
    return int(spent * 100 / limit)


def budget_status(budget: Any, spent: Decimal) -> BudgetStatus:
    limit = Decimal(budget.limit_amount)
    return BudgetStatus(
        **BudgetRead.model_validate(budget).model_dump(),
        spent=spent,
        remaining=limit - spent,
        percentage=_percentage(spent, limit),
    )


async def budget_statuses(session: AsyncSession, user_id: UUID, *, month: int, year: int) -> list[BudgetStatus]:
    budgets = await list_budgets(session, user_id, month=month, year=year)
    if not budgets:
        return []
    start, end = month_bounds(month, year)
    spending = {
        row.category: row.amount
        for row in compute_category_spending(
            await list_transactions_between(session, user_id, start, end), month, year
        )
    }
    return [budget_status(budget, spending.get(budget.category, Decimal("0"))) for budget in budgets]


def crossed_threshold(limit: Decimal, before: Decimal, after: Decimal) -> Optional[int]:
    """Highest warning level that ``before -> after`` steps over, if any."""
    before_pct = _percentage(before, limit)
    after_pct = _percentage(after, limit)
    crossed = [level for level in WARNING_THRESHOLDS if before_pct < level <= after_pct]
    return crossed[-1] if crossed else None


async def budget_warning_for(session: AsyncSession, transaction: Any) -> Optional[BudgetStatus]:
    """Status of the budget a freshly stored expense pushed over a warning level."""
    if transaction.type != TransactionType.EXPENSE or not transaction.category:
        return None
    occurred = transaction.occurred_at.astimezone(timezone.utc)
    budget = await find_budget(
        session, transaction.user_id, transaction.category, month=occurred.month, year=occurred.year
    )
    if budget is None:
        return None
    start, end = month_bounds(budget.month, budget.year)
    spending = compute_category_spending(
        await list_transactions_between(session, transaction.user_id, start, end), budget.month, budget.year
    )
    spent = next((row.amount for row in spending if row.category == budget.category), Decimal("0"))
    before = spent - Decimal(transaction.amount)
    if crossed_threshold(Decimal(budget.limit_amount), before, spent) is None:
        return None
    return budget_status(budget, spent)
