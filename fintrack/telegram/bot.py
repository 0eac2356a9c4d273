from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession
from telegram import BotCommand, Update
from telegram.constants import ParseMode
from telegram.ext import AIORateLimiter, Application, ContextTypes, MessageHandler, filters

from ..config import get_settings
from ..services.whatsapp import get_whatsapp_sender
from .ledger import SqlChatLedger, chat_link_repository, link_code_repository
from .router import ChatCommandRouter, ChatMessage

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message"]
GENERIC_ERROR_TEXT = "⚠️ Terjadi kesalahan. Silakan coba lagi nanti."

BOT_COMMANDS = [
    BotCommand("start", "Tampilkan pesan selamat datang"),
    BotCommand("help", "Panduan format pesan"),
    BotCommand("link", "Hubungkan chat dengan akun FinTrack AI"),
    BotCommand("unlink", "Putuskan chat dari akun"),
    BotCommand("saldo", "Lihat saldo dompet"),
    BotCommand("riwayat", "Lihat 5 transaksi terakhir"),
]

_application: Application | None = None
_lock = asyncio.Lock()


def build_router(session: AsyncSession) -> ChatCommandRouter:
    return ChatCommandRouter(
        links=chat_link_repository(session),
        link_codes=link_code_repository(session),
        ledger=SqlChatLedger(session, sender=get_whatsapp_sender()),
    )


async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route every text message, commands included, through the chat router."""
    message = update.effective_message
    if message is None or not message.text:
        return

    session_factory: Callable[[], Any] = context.application.bot_data["session_factory"]
    router_factory: Callable[[AsyncSession], ChatCommandRouter] = context.application.bot_data.get(
        "router_factory", build_router
    )
    user = update.effective_user
    chat_message = ChatMessage(
        chat_id=str(message.chat_id),
        text=message.text,
        username=user.username if user else None,
    )
    try:
        async with session_factory() as session:
            reply = await router_factory(session).dispatch(chat_message)
    except Exception:
        logger.exception("Failed to handle chat message from %s", chat_message.chat_id)
        reply = GENERIC_ERROR_TEXT
    await message.reply_text(reply, parse_mode=ParseMode.HTML, disable_web_page_preview=True)


def _create_application(token: str, session_factory: Callable[[], Any]) -> Application:
    application = (
        Application.builder()
        .token(token)
        .rate_limiter(AIORateLimiter())
        .build()
    )
    application.bot_data["session_factory"] = session_factory
    # Commands arrive as plain text too; ChatCommandRouter decides their order, not the
    # platform, so one handler carries everything.
    application.add_handler(MessageHandler(filters.TEXT, handle_text))
    return application


async def init_bot() -> None:
    """Initialise the Telegram bot and optionally register the webhook."""
    settings = get_settings()
    if not settings.telegram_bot_token or not settings.telegram_webhook_secret:
        logger.info("Telegram bot or webhook secret not configured; skipping bot initialisation.")
        return

    from ..db import SessionLocal

    async with _lock:
        global _application
        if _application is not None:
            return

        application = _create_application(settings.telegram_bot_token, SessionLocal)
        try:
            await application.initialize()
            await application.start()
            try:
                await application.bot.set_my_commands(BOT_COMMANDS)
            except Exception:
                logger.exception("Failed to set Telegram command list.")
            if settings.telegram_register_webhook_on_start:
                if not settings.backend_base_url:
                    logger.warning("BACKEND_BASE_URL is missing; skipping Telegram webhook registration.")
                else:
                    webhook_url = (
                        str(settings.backend_base_url).rstrip("/")
                        + f"/api/telegram/webhook/{settings.telegram_webhook_secret}"
                    )
                    await application.bot.set_webhook(
                        url=webhook_url, drop_pending_updates=False, allowed_updates=ALLOWED_UPDATES
                    )
                    logger.info("Telegram webhook configured at %s", webhook_url)
        except Exception:
            logger.exception("Failed to initialise Telegram bot; bot disabled for this run.")
            with contextlib.suppress(Exception):
                await application.stop()
            with contextlib.suppress(Exception):
                await application.shutdown()
            return

        _application = application
        logger.info("Telegram bot initialised.")


async def handle_update(payload: dict[str, Any]) -> None:
    """Process a Telegram update forwarded by FastAPI."""
    async with _lock:
        if _application is None:
            raise RuntimeError("Telegram bot is not initialised.")
        application = _application
    update = Update.de_json(payload, application.bot)
    await application.process_update(update)


async def shutdown_bot() -> None:
    """Tear down the Telegram bot."""
    async with _lock:
        global _application
        if _application is None:
            return
        await _application.stop()
        await _application.shutdown()
        _application = None
