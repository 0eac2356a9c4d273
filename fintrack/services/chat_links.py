"""Link codes and chat bindings between Telegram chats and user accounts."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from ..models.base import utcnow
from ..schemas.chat_link import ChatLinkRecord, LinkCodeRecord
from ..utils.sanitize import generate_link_code
from .repositories import Repository

logger = logging.getLogger(__name__)

LINK_CODE_TTL = timedelta(minutes=5)


class LinkError(Exception):
    """Raised when ``/link`` cannot bind a chat; ``code`` names the reason."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


async def issue_link_code(
    codes: Repository[LinkCodeRecord],
    user_id: UUID,
    *,
    clock: Callable[[], datetime] = utcnow,
    ttl: timedelta = LINK_CODE_TTL,
    code_factory: Callable[[], str] = generate_link_code,
) -> LinkCodeRecord:
    """Replace any outstanding codes of ``user_id`` with a fresh one."""
    for previous in await codes.find(user_id=user_id):
        await codes.delete(previous.code)

    now = clock()
    record = LinkCodeRecord(
        code=code_factory(),
        user_id=user_id,
        created_at=now,
        expires_at=now + ttl,
    )
    await codes.set(record.code, record)
    return record


async def get_active_link(links: Repository[ChatLinkRecord], chat_id: str) -> Optional[ChatLinkRecord]:
    for link in await links.find(chat_id=chat_id):
        if link.is_active:
            return link
    return None


async def get_user_link(links: Repository[ChatLinkRecord], user_id: UUID) -> Optional[ChatLinkRecord]:
    link = await links.get(user_id)
    if link is not None and link.is_active:
        return link
    return None


async def consume_link_code(
    links: Repository[ChatLinkRecord],
    codes: Repository[LinkCodeRecord],
    code: str,
    chat_id: str,
    *,
    display_handle: Optional[str] = None,
    clock: Callable[[], datetime] = utcnow,
) -> ChatLinkRecord:
    """Bind ``chat_id`` to the owner of ``code`` and delete the code."""
    key = code.strip().upper()
    record = await codes.get(key)
    if record is None:
        raise LinkError("Kode tidak valid.", "CODE_NOT_FOUND")

    now = clock()
    if now > record.expires_at:
        await codes.delete(key)
        raise LinkError("Kode sudah kedaluwarsa. Buat kode baru di aplikasi.", "CODE_EXPIRED")

    current = await get_active_link(links, chat_id)
    if current is not None and current.user_id != record.user_id:
        raise LinkError(
            "Chat ini sudah terhubung ke akun lain. Kirim /unlink terlebih dahulu.",
            "CHAT_ALREADY_LINKED",
        )

    link = ChatLinkRecord(
        user_id=record.user_id,
        chat_id=chat_id,
        display_handle=display_handle,
        is_active=True,
        linked_at=now,
    )
    await links.set(record.user_id, link)
    await codes.delete(key)
    logger.info("Linked chat %s to user %s", chat_id, record.user_id)
    return link


async def deactivate_chat(links: Repository[ChatLinkRecord], chat_id: str) -> Optional[ChatLinkRecord]:
    link = await get_active_link(links, chat_id)
    if link is None:
        return None
    await links.set(link.user_id, link.model_copy(update={"is_active": False}))
    logger.info("Unlinked chat %s from user %s", chat_id, link.user_id)
    return link


async def deactivate_user(links: Repository[ChatLinkRecord], user_id: UUID) -> Optional[ChatLinkRecord]:
    link = await get_user_link(links, user_id)
    if link is None:
        return None
    await links.set(user_id, link.model_copy(update={"is_active": False}))
    return link
