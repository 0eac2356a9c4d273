"""WhatsApp messages sent after ledger activity.

Delivery is best-effort: a failed send is logged and never undoes the
ledger write that triggered it.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.transaction import TransactionType
from ..parser import DEFAULT_CATEGORY
from ..schemas.report import DailySummary
from ..utils.currency import format_rupiah
from ..utils.sanitize import to_international_phone
from .budgets import budget_warning_for
from .reports import daily_summary
from .whatsapp import DeliveryError, FonnteClient

logger = logging.getLogger(__name__)

TYPE_LABELS = {
    TransactionType.INCOME: "Pemasukan",
    TransactionType.EXPENSE: "Pengeluaran",
    TransactionType.TRANSFER: "Transfer",
}


def _recipient(sender: FonnteClient, user: Any) -> str | None:
    if not sender.is_configured or not user.phone_number or not user.phone_verified:
        return None
    return to_international_phone(user.phone_number)


async def notify_transaction_recorded(
    session: AsyncSession,
    sender: FonnteClient,
    user: Any,
    transaction: Any,
    *,
    confirm: bool = True,
) -> None:
    """Confirm a stored entry over WhatsApp and warn when it strains a budget.

    ``confirm=False`` skips the confirmation and only checks the budget, for
    channels that already replied to the user themselves.
    """
    phone = _recipient(sender, user)
    if phone is None:
        return

    try:
        if confirm:
            await sender.send_transaction_notification(
                phone,
                type=TYPE_LABELS[TransactionType(transaction.type)],
                amount=format_rupiah(transaction.amount),
                description=transaction.description or "-",
                category=transaction.category or DEFAULT_CATEGORY,
                date=f"{transaction.occurred_at:%d/%m/%Y}",
            )
        status = await budget_warning_for(session, transaction)
        if status is not None:
            await sender.send_budget_warning(
                phone,
                percentage=str(status.percentage),
                spent=format_rupiah(status.spent),
                budget=format_rupiah(status.limit_amount),
                remaining=format_rupiah(status.remaining),
            )
            logger.info("Budget warning sent to user %s for %s", user.id, status.category)
    except DeliveryError:
        logger.warning("WhatsApp notification for transaction %s was not delivered", transaction.id, exc_info=True)


async def send_daily_summary(
    session: AsyncSession, sender: FonnteClient, user: Any, day: date
) -> DailySummary:
    """Build the day's summary and push it to the user's WhatsApp when possible."""
    summary = await daily_summary(session, user.id, day)
    phone = _recipient(sender, user)
    if phone is None:
        return summary
    try:
        await sender.send_daily_summary(
            phone,
            date=f"{day:%d/%m/%Y}",
            total_income=format_rupiah(summary.income),
            total_expense=format_rupiah(summary.expense),
            balance=format_rupiah(summary.balance),
            transaction_count=summary.transaction_count,
        )
    except DeliveryError:
        logger.warning("Daily summary for user %s was not delivered", user.id, exc_info=True)
        return summary
    return summary.model_copy(update={"delivered": True})
