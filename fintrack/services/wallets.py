from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.transaction import Transaction
from ..models.wallet import Wallet, WalletType
from ..schemas.wallet import WalletCreate, WalletUpdate

DEFAULT_WALLETS: tuple[tuple[str, WalletType], ...] = (
    ("Cash", WalletType.CASH),
    ("Bank", WalletType.BANK),
    ("E-Wallet", WalletType.EWALLET),
)


async def list_wallets(session: AsyncSession, user_id: UUID) -> list[Wallet]:
    result = await session.execute(
        select(Wallet).where(Wallet.user_id == user_id).order_by(Wallet.created_at.asc())
    )
    return list(result.scalars().all())


async def get_wallet(session: AsyncSession, wallet_id: UUID) -> Optional[Wallet]:
    return await session.get(Wallet, wallet_id)


async def create_wallet(session: AsyncSession, payload: WalletCreate) -> Wallet:
    wallet = Wallet(
        name=payload.name,
        type=payload.type,
        balance=payload.balance,
        user_id=payload.user_id,
        currency=payload.currency,
    )
    session.add(wallet)
    await session.commit()
    await session.refresh(wallet)
    return wallet


async def ensure_default_wallets(session: AsyncSession, user_id: UUID, currency: str = "IDR") -> list[Wallet]:
    """Create the Cash/Bank/E-Wallet trio for users that have no wallets yet."""
    existing = await list_wallets(session, user_id)
    if existing:
        return existing

    wallets = [
        Wallet(name=name, type=wallet_type, balance=Decimal("0"), currency=currency, user_id=user_id)
        for name, wallet_type in DEFAULT_WALLETS
    ]
    session.add_all(wallets)
    await session.commit()
    for wallet in wallets:
        await session.refresh(wallet)
    return wallets


def match_wallet(wallets: Iterable[Wallet], tag: Optional[str]) -> Optional[Wallet]:
    """Find the wallet an account tag refers to: wallet type first, then name."""
    if not tag:
        return None
    candidates = list(wallets)
    needle = tag.strip().lower()
    try:
        wallet_type: Optional[WalletType] = WalletType(needle)
    except ValueError:
        wallet_type = None
    if wallet_type is not None:
        for wallet in candidates:
            if wallet.type == wallet_type:
                return wallet
    for wallet in candidates:
        if wallet.name.strip().lower() == needle:
            return wallet
    return None


def total_balance(wallets: Iterable[Wallet]) -> Decimal:
    return sum((wallet.balance or Decimal("0") for wallet in wallets), Decimal("0"))


async def update_wallet(session: AsyncSession, wallet: Wallet, payload: WalletUpdate) -> Wallet:
    if payload.name is not None:
        wallet.name = payload.name
    if payload.type is not None:
        wallet.type = payload.type
    if payload.currency is not None:
        wallet.currency = payload.currency
    await session.commit()
    await session.refresh(wallet)
    return wallet


async def delete_wallet(session: AsyncSession, wallet: Wallet) -> int:
    """Delete a wallet together with the entries booked on it.

    Transfers that only arrive in this wallet keep their row; the database
    clears their ``to_wallet_id``. Returns the number of entries removed.
    """
    result = await session.execute(delete(Transaction).where(Transaction.wallet_id == wallet.id))
    await session.delete(wallet)
    await session.commit()
    return result.rowcount or 0
