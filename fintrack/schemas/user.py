from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    display_name: str = Field(min_length=2, max_length=100)
    email: str = Field(max_length=255)
    phone_number: str | None = Field(default=None, max_length=20)
    phone_verified: bool = False
    password_hash: str | None = None


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    display_name: str
    email: str
    phone_number: str | None
    phone_verified: bool
    currency: str
    language: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
