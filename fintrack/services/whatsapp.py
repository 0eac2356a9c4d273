from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..config import get_settings
from .templates import (
    APP_NAME,
    BUDGET_WARNING_TEMPLATE,
    DAILY_SUMMARY_TEMPLATE,
    OTP_TEMPLATE,
    TRANSACTION_ADDED_TEMPLATE,
    render_template,
)

logger = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    """Raised when a WhatsApp message could not be handed to the provider."""


class FonnteClient:
    """Sends WhatsApp messages through the Fonnte HTTP API."""

    def __init__(
        self,
        token: Optional[str],
        base_url: str = "https://api.fonnte.com",
        *,
        app_name: str = APP_NAME,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.token = token
        self.app_name = app_name
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout=30.0, connect=10.0),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def send_message(self, phone: str, message: str) -> dict[str, Any]:
        if not self.token:
            raise DeliveryError("WhatsApp API not configured")
        try:
            response = await self.client.post(
                "/send",
                headers={"Authorization": self.token},
                data={"target": phone, "message": message, "countryCode": "62"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("WhatsApp send to %s failed", phone)
            raise DeliveryError("Failed to connect to WhatsApp API") from exc

        if not data.get("status"):
            logger.error("Fonnte rejected message to %s: %s", phone, data)
            raise DeliveryError(data.get("reason") or "Failed to send message")
        return data

    async def send_otp(self, phone: str, code: str, *, expiry_minutes: int = 5) -> dict[str, Any]:
        message = render_template(
            OTP_TEMPLATE, otp=code, expiry=expiry_minutes, appName=self.app_name
        )
        return await self.send_message(phone, message)

    async def send_transaction_notification(
        self,
        phone: str,
        *,
        type: str,
        amount: str,
        description: str,
        category: str,
        date: str,
    ) -> dict[str, Any]:
        message = render_template(
            TRANSACTION_ADDED_TEMPLATE,
            type=type,
            amount=amount,
            description=description,
            category=category,
            date=date,
        )
        return await self.send_message(phone, message)

    async def send_budget_warning(
        self, phone: str, *, percentage: str, spent: str, budget: str, remaining: str
    ) -> dict[str, Any]:
        message = render_template(
            BUDGET_WARNING_TEMPLATE,
            percentage=percentage,
            spent=spent,
            budget=budget,
            remaining=remaining,
        )
        return await self.send_message(phone, message)

    async def send_daily_summary(
        self,
        phone: str,
        *,
        date: str,
        total_income: str,
        total_expense: str,
        balance: str,
        transaction_count: int,
    ) -> dict[str, Any]:
        message = render_template(
            DAILY_SUMMARY_TEMPLATE,
            date=date,
            totalIncome=total_income,
            totalExpense=total_expense,
            balance=balance,
            transactionCount=transaction_count,
        )
        return await self.send_message(phone, message)


_sender: FonnteClient | None = None


def get_whatsapp_sender() -> FonnteClient:
    global _sender
    if _sender is None:
        settings = get_settings()
        _sender = FonnteClient(
            settings.fonnte_api_token,
            str(settings.fonnte_base_url).rstrip("/"),
            app_name=settings.app_name,
        )
    return _sender
