from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.otp import OtpPurpose


class OneTimeCodeRecord(BaseModel):
    """Stored state of a one-time code, keyed by phone number."""

    model_config = ConfigDict(from_attributes=True)

    phone_number: str
    purpose: OtpPurpose
    code: str = Field(min_length=6, max_length=6)
    attempt_count: int = Field(default=0, ge=0)
    created_at: datetime
    expires_at: datetime
    email: str | None = None
    display_name: str | None = None
    password_hash: str | None = None
    user_id: UUID | None = None
