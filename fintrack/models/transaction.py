from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, Enum as SqlEnum, ForeignKey, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionSource(str, Enum):
    MANUAL = "manual"
    OCR = "ocr"
    CHAT = "chat"


class Transaction(Base):
    """Ledger entry owned by a user."""

    __tablename__ = "transactions"

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="IDR", nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SqlEnum(TransactionType, values_callable=lambda enum: [member.value for member in enum]),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    source: Mapped[str] = mapped_column(String(32), default=TransactionSource.MANUAL.value, nullable=False)
    items: Mapped[Optional[list[dict]]] = mapped_column(JSONB, nullable=True)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("wallets.id", ondelete="SET NULL"), nullable=True
    )
    to_wallet_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("wallets.id", ondelete="SET NULL"), nullable=True
    )

    user: Mapped["User"] = relationship(back_populates="transactions")
    wallet: Mapped[Optional["Wallet"]] = relationship(foreign_keys=[wallet_id])
    to_wallet: Mapped[Optional["Wallet"]] = relationship(foreign_keys=[to_wallet_id])


from .user import User  # noqa: E402  # avoid circular import at runtime
from .wallet import Wallet  # noqa: E402
