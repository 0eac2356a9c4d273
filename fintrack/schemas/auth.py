from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..models.otp import OtpPurpose
from .user import UserRead


# Request fields are optional on purpose: missing values are reported with a
# MISSING_FIELDS code instead of FastAPI's generic 422.
class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    password: str | None = None


class VerifyOtpRequest(BaseModel):
    phone: str | None = None
    code: str | None = None


class LoginPhoneRequest(BaseModel):
    phone: str | None = None
    email: str | None = None


class ResendOtpRequest(BaseModel):
    phone: str | None = None


class EmailLoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class OtpSentResponse(BaseModel):
    success: bool = True
    code: str = "OTP_SENT"
    message: str
    phone: str
    type: OtpPurpose | None = None
    dev_otp: str | None = Field(default=None, description="Only populated in development without WhatsApp.")


class AccessTokenResponse(BaseModel):
    """Response returned after a successful verification or login."""

    success: bool = True
    code: str
    message: str
    access_token: str = Field(description="JWT access token to use in the Authorization header")
    token_type: str = Field(default="bearer", description="Type of token returned")
    expires_in: int = Field(description="Lifetime of the token in seconds")
    expires_at: datetime = Field(description="UTC timestamp when the token expires")
    linked: bool = False
    user: UserRead


class AuthErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    remaining: int | None = None
