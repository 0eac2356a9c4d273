from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel


class CategorySpending(BaseModel):
    category: str
    amount: Decimal


class MonthlyReport(BaseModel):
    month: int
    year: int
    income: Decimal
    expense: Decimal
    net: Decimal
    categories: list[CategorySpending]


class DailySummary(BaseModel):
    date: dt.date
    income: Decimal
    expense: Decimal
    balance: Decimal
    transaction_count: int
    delivered: bool = False
