from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.wallet import WalletType


class WalletCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    type: WalletType = Field(default=WalletType.CASH)
    currency: str = Field(default="IDR", max_length=3, min_length=3)
    balance: Decimal = Field(default=Decimal("0"))


class WalletCreate(WalletCreateRequest):
    user_id: UUID


class WalletUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=64)
    type: Optional[WalletType] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class WalletRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    name: str
    type: WalletType
    balance: Decimal
    currency: str
    created_at: datetime
    updated_at: datetime


class WalletSummary(BaseModel):
    """All wallets of a user with their combined balance."""

    wallets: list[WalletRead]
    total: Decimal
