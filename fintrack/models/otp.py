from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, Enum as SqlEnum, Integer, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class OtpPurpose(str, Enum):
    REGISTER = "register"
    LOGIN = "login"
    LINK = "link"


class OneTimeCode(Base):
    """Pending one-time code, at most one per phone number."""

    __tablename__ = "otp_codes"

    phone_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    purpose: Mapped[OtpPurpose] = mapped_column(
        SqlEnum(OtpPurpose, name="otppurpose", values_callable=lambda enum: [member.value for member in enum]),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(String(6), nullable=False)
    attempt_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # Not a foreign key: the row may outlive a deleted account until it expires.
    user_id: Mapped[Optional[UUID]] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
