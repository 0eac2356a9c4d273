from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ChatLink(Base):
    """Binding between a Telegram chat and an internal user, one per user."""

    __tablename__ = "chat_links"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    chat_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    display_handle: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    linked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ChatLinkCode(Base):
    """Short-lived code shown in the web UI and redeemed with ``/link``."""

    __tablename__ = "chat_link_codes"

    code: Mapped[str] = mapped_column(String(12), unique=True, nullable=False)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
