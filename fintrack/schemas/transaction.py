from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.transaction import TransactionSource, TransactionType


class TransactionItem(BaseModel):
    """Line item extracted from a receipt."""

    name: str
    quantity: Decimal = Field(default=1)
    price: Decimal


class TransactionCreateRequest(BaseModel):
    """External API payload for adding a transaction."""

    type: TransactionType
    amount: Decimal = Field(gt=0)
    currency: str = Field(default="IDR", min_length=3, max_length=3)
    description: Optional[str] = Field(default=None, max_length=512)
    category: Optional[str] = Field(default=None, max_length=64)
    occurred_at: Optional[datetime] = None
    wallet_id: Optional[UUID] = None
    to_wallet_id: Optional[UUID] = None


class TransactionCreate(BaseModel):
    """Internal payload for persisting a new ledger entry."""

    type: TransactionType
    amount: Decimal = Field(gt=0)
    currency: str = Field(default="IDR", min_length=3, max_length=3)
    description: Optional[str] = Field(default=None, max_length=512)
    category: Optional[str] = Field(default=None, max_length=64)
    occurred_at: datetime
    items: Optional[list[TransactionItem]] = None
    source: TransactionSource = TransactionSource.MANUAL
    user_id: UUID
    wallet_id: Optional[UUID] = None
    to_wallet_id: Optional[UUID] = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value: TransactionType | str) -> TransactionType:
        """Allow case-insensitive transaction types from external clients."""
        if isinstance(value, TransactionType):
            return value
        if isinstance(value, str):
            try:
                return TransactionType(value.lower())
            except ValueError as exc:
                raise ValueError("Unsupported transaction type") from exc
        raise TypeError("Transaction type must be a string or TransactionType instance")

    @model_validator(mode="after")
    def _check_transfer_wallets(self) -> "TransactionCreate":
        if self.to_wallet_id is None:
            return self
        if self.type != TransactionType.TRANSFER:
            raise ValueError("to_wallet_id is only allowed for transfers")
        if self.wallet_id is None:
            raise ValueError("Transfers with a destination wallet need a source wallet")
        if self.wallet_id == self.to_wallet_id:
            raise ValueError("Source and destination wallets must differ")
        return self


class TransactionRead(BaseModel):
    """API response shape for transactions."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: TransactionType
    amount: Decimal
    currency: str
    description: Optional[str]
    category: Optional[str]
    occurred_at: datetime
    items: Optional[list[TransactionItem]] = None
    source: str
    user_id: UUID
    wallet_id: Optional[UUID] = None
    to_wallet_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
