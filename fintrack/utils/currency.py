from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

# Offline rates with USD as the base currency.
BASE_RATES: Mapping[str, Decimal] = {
    "USD": Decimal("1"),
    "IDR": Decimal("15850"),
    "EUR": Decimal("0.92"),
    "GBP": Decimal("0.79"),
    "JPY": Decimal("149.5"),
    "SGD": Decimal("1.34"),
    "MYR": Decimal("4.47"),
    "THB": Decimal("35.2"),
    "AUD": Decimal("1.53"),
    "CNY": Decimal("7.24"),
    "KRW": Decimal("1330"),
    "INR": Decimal("83.1"),
    "PHP": Decimal("56.2"),
    "VND": Decimal("24500"),
    "SAR": Decimal("3.75"),
}

SUPPORTED_CURRENCIES = tuple(BASE_RATES)


def convert_currency(amount: Decimal | int | float, from_currency: str, to_currency: str) -> Decimal:
    """Convert using the offline table; unknown codes are treated as rate 1."""
    value = Decimal(str(amount))
    source = from_currency.upper()
    target = to_currency.upper()
    if source == target:
        return value
    from_rate = BASE_RATES.get(source, Decimal("1"))
    to_rate = BASE_RATES.get(target, Decimal("1"))
    return value / from_rate * to_rate


def format_rupiah(amount: Decimal | int | float) -> str:
    """``50000`` -> ``Rp50.000``. Fractions are rounded away."""
    value = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(int(value)):,}".replace(",", ".")
    return f"{sign}Rp{grouped}"


def _one_decimal(value: Decimal) -> str:
    return str(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_compact(amount: Decimal | int | float, lang: str = "id") -> str:
    value = Decimal(str(amount))
    if lang == "id":
        if value >= 1_000_000_000:
            return f"{_one_decimal(value / 1_000_000_000)}M"
        if value >= 1_000_000:
            return f"{_one_decimal(value / 1_000_000)}jt"
        if value >= 1_000:
            return f"{(value / 1_000).quantize(Decimal('1'), rounding=ROUND_HALF_UP)}rb"
        return str(value)
    if value >= 1_000_000_000:
        return f"{_one_decimal(value / 1_000_000_000)}B"
    if value >= 1_000_000:
        return f"{_one_decimal(value / 1_000_000)}M"
    if value >= 1_000:
        return f"{_one_decimal(value / 1_000)}K"
    return str(value)
