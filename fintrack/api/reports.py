from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Query

from ..models.base import utcnow
from ..schemas import DailySummary, MonthlyReport
from ..services import monthly_report, send_daily_summary
from .dependencies import CurrentUser, SenderDep, SessionDep

router = APIRouter()


@router.get("/monthly", response_model=MonthlyReport)
async def monthly_report_endpoint(
    session: SessionDep,
    current_user: CurrentUser,
    month: Annotated[Optional[int], Query(ge=1, le=12)] = None,
    year: Annotated[Optional[int], Query(ge=2000, le=2100)] = None,
) -> MonthlyReport:
    """Income, expense and per-category spending for one month."""
    today = utcnow()
    return await monthly_report(session, current_user.id, month or today.month, year or today.year)


@router.post("/daily-summary", response_model=DailySummary)
async def daily_summary_endpoint(
    session: SessionDep,
    current_user: CurrentUser,
    sender: SenderDep,
    day: Optional[date] = Query(default=None, alias="date"),
) -> DailySummary:
    """Summarise one day and send it to the user's WhatsApp number."""
    return await send_daily_summary(session, sender, current_user, day or utcnow().date())
