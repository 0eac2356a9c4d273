import logging
from datetime import timedelta

from fastapi import APIRouter, HTTPException, Request, status

from ..config import get_settings
from ..schemas import LinkCodeResponse
from ..services.chat_links import deactivate_user, get_user_link, issue_link_code
from ..services.rate_limit import RATE_LIMITS
from ..services.users import set_chat_id
from ..telegram.bot import handle_update
from ..telegram.ledger import chat_link_repository, link_code_repository
from .dependencies import CurrentUser, LimiterDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_secret(secret: str) -> None:
    settings = get_settings()
    if not settings.telegram_webhook_secret or secret != settings.telegram_webhook_secret:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.post("/webhook/{secret}", status_code=status.HTTP_204_NO_CONTENT)
async def telegram_webhook(secret: str, request: Request) -> None:
    verify_secret(secret)
    payload = await request.json()
    await handle_update(payload)


@router.post("/link-code", response_model=LinkCodeResponse)
async def create_link_code(
    session: SessionDep, current_user: CurrentUser, limiter: LimiterDep
) -> LinkCodeResponse:
    """Issue a short code the user sends to the bot as ``/link <code>``."""
    if not limiter.check(f"telegram-link:{current_user.id}", RATE_LIMITS["telegram_link"]).allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Terlalu banyak permintaan. Coba lagi nanti.",
        )
    settings = get_settings()
    ttl = timedelta(seconds=settings.link_code_ttl_seconds)
    record = await issue_link_code(link_code_repository(session), current_user.id, ttl=ttl)
    link = await get_user_link(chat_link_repository(session), current_user.id)
    return LinkCodeResponse(
        code=record.code,
        expires_in=settings.link_code_ttl_seconds,
        is_already_linked=link is not None,
        linked_username=link.display_handle if link else None,
    )


@router.delete("/link", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(session: SessionDep, current_user: CurrentUser) -> None:
    link = await deactivate_user(chat_link_repository(session), current_user.id)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Telegram belum terhubung.")
    await set_chat_id(session, current_user.id, None)
    logger.info("User %s unlinked chat %s", current_user.id, link.chat_id)
