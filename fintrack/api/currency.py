from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel

from ..utils.currency import SUPPORTED_CURRENCIES, convert_currency, format_compact

router = APIRouter()


class ConversionResponse(BaseModel):
    amount: Decimal
    from_currency: str
    to_currency: str
    result: Decimal
    compact: str


@router.get("/rates", response_model=list[str])
async def list_currencies() -> list[str]:
    return list(SUPPORTED_CURRENCIES)


@router.get("/convert", response_model=ConversionResponse)
async def convert(
    amount: Annotated[Decimal, Query(ge=0)],
    from_currency: Annotated[str, Query(alias="from", min_length=3, max_length=3)] = "USD",
    to_currency: Annotated[str, Query(alias="to", min_length=3, max_length=3)] = "IDR",
    lang: Annotated[str, Query(pattern="^(id|en)$")] = "id",
) -> ConversionResponse:
    """Convert with the built-in offline rate table."""
    result = convert_currency(amount, from_currency, to_currency).quantize(Decimal("0.01"))
    return ConversionResponse(
        amount=amount,
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        result=result,
        compact=format_compact(result, lang),
    )
