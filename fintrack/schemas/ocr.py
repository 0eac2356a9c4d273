from __future__ import annotations

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .transaction import TransactionItem


class ReceiptScan(BaseModel):
    """Fields read from a receipt photo."""

    total: Optional[Decimal] = None
    date: Optional[str] = Field(default=None, description="YYYY-MM-DD as printed on the receipt")
    merchant: Optional[str] = None
    items: list[TransactionItem] = Field(default_factory=list)
    category: Optional[str] = None
    raw_text: str = ""
    confidence: Literal["high", "medium", "low"] = "low"
