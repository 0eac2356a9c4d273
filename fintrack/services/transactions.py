from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.transaction import Transaction, TransactionType
from ..models.wallet import Wallet
from ..schemas.transaction import TransactionCreate


def _decimal_to_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _apply_wallet_balance(wallet: Wallet, delta: Decimal) -> None:
    wallet.balance = ((wallet.balance or Decimal("0")) + delta).quantize(Decimal("0.01"))


async def _fetch_wallet_for_user(session: AsyncSession, wallet_id: UUID, user_id: UUID) -> Wallet:
    wallet = await session.get(Wallet, wallet_id)
    if not wallet:
        raise ValueError("Wallet not found")
    if wallet.user_id != user_id:
        raise ValueError("Wallet does not belong to user")
    return wallet


def _normalise_items(items: Optional[list[dict[str, Any]]]) -> Optional[list[dict[str, Any]]]:
    if not items:
        return None
    normalised: list[dict[str, Any]] = []
    for item in items:
        clean = {**item}
        for key in ("quantity", "price"):
            if key in clean and clean[key] is not None:
                clean[key] = _decimal_to_float(Decimal(str(clean[key])))
        normalised.append(clean)
    return normalised


async def create_transaction(
    session: AsyncSession,
    payload: TransactionCreate,
) -> Transaction:
    """Persist a ledger entry and apply its effect on the wallet balances.

    Income credits ``wallet_id`` and expense debits it. A transfer debits
    ``wallet_id`` and credits ``to_wallet_id`` only when both are given;
    otherwise it is recorded without touching any balance.
    """
    wallet = None
    if payload.wallet_id:
        wallet = await _fetch_wallet_for_user(session, payload.wallet_id, payload.user_id)
    to_wallet = None
    if payload.to_wallet_id:
        to_wallet = await _fetch_wallet_for_user(session, payload.to_wallet_id, payload.user_id)

    transaction = Transaction(
        type=payload.type,
        amount=payload.amount,
        currency=payload.currency,
        description=payload.description,
        category=payload.category,
        occurred_at=payload.occurred_at,
        source=payload.source.value,
        items=_normalise_items(
            [item.model_dump(exclude_none=True) for item in payload.items] if payload.items else None
        ),
        user_id=payload.user_id,
        wallet_id=wallet.id if wallet else None,
        to_wallet_id=to_wallet.id if to_wallet else None,
    )
    session.add(transaction)

    if payload.type == TransactionType.INCOME and wallet:
        _apply_wallet_balance(wallet, payload.amount)
    elif payload.type == TransactionType.EXPENSE and wallet:
        _apply_wallet_balance(wallet, -payload.amount)
    elif payload.type == TransactionType.TRANSFER and wallet and to_wallet:
        _apply_wallet_balance(wallet, -payload.amount)
        _apply_wallet_balance(to_wallet, payload.amount)

    await session.commit()
    await session.refresh(transaction)
    return transaction


async def list_transactions(
    session: AsyncSession,
    *,
    limit: int = 50,
    offset: int = 0,
    transaction_type: Optional[TransactionType] = None,
    user_id: Optional[UUID] = None,
    wallet_id: Optional[UUID] = None,
    occurred_after: Optional[datetime] = None,
    occurred_before: Optional[datetime] = None,
) -> Sequence[Transaction]:
    """Retrieve transactions newest first with optional filters."""
    stmt: Select[tuple[Transaction]] = select(Transaction).order_by(
        Transaction.occurred_at.desc(), Transaction.created_at.desc()
    )
    if transaction_type:
        stmt = stmt.where(Transaction.type == transaction_type)
    if user_id:
        stmt = stmt.where(Transaction.user_id == user_id)
    if wallet_id:
        stmt = stmt.where(
            (Transaction.wallet_id == wallet_id) | (Transaction.to_wallet_id == wallet_id)
        )
    if occurred_after:
        stmt = stmt.where(Transaction.occurred_at >= occurred_after)
    if occurred_before:
        stmt = stmt.where(Transaction.occurred_at <= occurred_before)
    result = await session.execute(stmt.limit(limit).offset(offset))
    return result.scalars().all()


async def get_transaction(session: AsyncSession, transaction_id: Any) -> Optional[Transaction]:
    return await session.get(Transaction, transaction_id)


async def delete_transaction(session: AsyncSession, transaction: Transaction) -> None:
    """Remove a ledger entry and undo whatever it did to wallet balances."""
    wallet = await session.get(Wallet, transaction.wallet_id) if transaction.wallet_id else None
    to_wallet = await session.get(Wallet, transaction.to_wallet_id) if transaction.to_wallet_id else None
    amount = Decimal(transaction.amount)

    if transaction.type == TransactionType.INCOME and wallet:
        _apply_wallet_balance(wallet, -amount)
    elif transaction.type == TransactionType.EXPENSE and wallet:
        _apply_wallet_balance(wallet, amount)
    elif transaction.type == TransactionType.TRANSFER and wallet and to_wallet:
        _apply_wallet_balance(wallet, amount)
        _apply_wallet_balance(to_wallet, -amount)

    await session.delete(transaction)
    await session.commit()


async def list_transactions_between(
    session: AsyncSession, user_id: UUID, start: datetime, end: datetime
) -> Sequence[Transaction]:
    """Every entry of a user with ``start <= occurred_at < end``, unpaginated."""
    stmt = (
        select(Transaction)
        .where(
            Transaction.user_id == user_id,
            Transaction.occurred_at >= start,
            Transaction.occurred_at < end,
        )
        .order_by(Transaction.occurred_at.asc())
    )
    result = await session.execute(stmt)
    return result.scalars().all()
