from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ChatLinkRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    chat_id: str
    display_handle: str | None = None
    is_active: bool = True
    linked_at: datetime


class LinkCodeRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    user_id: UUID
    created_at: datetime
    expires_at: datetime


class LinkCodeResponse(BaseModel):
    """Returned to the web UI so the user can send ``/link <code>`` to the bot."""

    code: str
    expires_in: int = Field(description="Seconds until the code expires")
    is_already_linked: bool
    linked_username: str | None = None
