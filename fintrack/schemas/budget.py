from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BudgetCreateRequest(BaseModel):
    category: str = Field(min_length=1, max_length=64)
    limit_amount: Decimal = Field(gt=0)
    currency: str = Field(default="IDR", min_length=3, max_length=3)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)


class BudgetCreate(BudgetCreateRequest):
    user_id: UUID


class BudgetUpdate(BaseModel):
    category: Optional[str] = Field(default=None, min_length=1, max_length=64)
    limit_amount: Optional[Decimal] = Field(default=None, gt=0)


class BudgetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    category: str
    limit_amount: Decimal
    currency: str
    month: int
    year: int
    created_at: datetime
    updated_at: datetime


class BudgetStatus(BudgetRead):
    """A budget together with what has been spent against it so far."""

    spent: Decimal
    remaining: Decimal
    percentage: int
