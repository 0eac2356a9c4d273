from __future__ import annotations

from datetime import timedelta
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..db import get_db
from ..models.otp import OneTimeCode
from ..models.user import User
from ..schemas.otp import OneTimeCodeRecord
from ..services.auth import PhoneAuthService
from ..services.otp import OtpManager
from ..services.rate_limit import RateLimiter, get_rate_limiter
from ..services.repositories import SqlAlchemyRepository
from ..services.whatsapp import FonnteClient, get_whatsapp_sender
from ..utils import jwt as jwt_utils


oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/auth/login",
    description="Use `/api/auth/login` or one of the OTP verification endpoints to obtain an access token.",
)

SessionDep = Annotated[AsyncSession, Depends(get_db)]
TokenDep = Annotated[str, Depends(oauth2_scheme)]
LimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
SenderDep = Annotated[FonnteClient, Depends(get_whatsapp_sender)]


def _unauthorised(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


ClientIpDep = Annotated[str, Depends(client_ip)]


def get_otp_manager(session: SessionDep) -> OtpManager:
    settings = get_settings()
    repository = SqlAlchemyRepository(session, OneTimeCode, OneTimeCodeRecord, key_column="phone_number")
    return OtpManager(
        repository,
        ttl=timedelta(seconds=settings.otp_ttl_seconds),
        max_attempts=settings.otp_max_attempts,
    )


def get_auth_service(
    session: SessionDep,
    otp: Annotated[OtpManager, Depends(get_otp_manager)],
    limiter: LimiterDep,
    sender: SenderDep,
) -> PhoneAuthService:
    return PhoneAuthService(session, otp, limiter, sender, get_settings())


AuthServiceDep = Annotated[PhoneAuthService, Depends(get_auth_service)]


async def get_current_user(session: SessionDep, token: TokenDep) -> User:
    settings = get_settings()
    try:
        payload = jwt_utils.decode(
            token,
            settings.auth_secret_key,
            algorithms=[settings.auth_token_algorithm],
        )
    except jwt_utils.ExpiredSignatureError as exc:
        raise _unauthorised("Access token has expired") from exc
    except jwt_utils.InvalidTokenError as exc:
        raise _unauthorised("Invalid authentication credentials") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorised("Token payload is missing subject")

    try:
        user_uuid = UUID(str(user_id))
    except (ValueError, TypeError) as exc:
        raise _unauthorised("Malformed user identifier in token") from exc

    user = await session.get(User, user_uuid)
    if not user or not user.is_active:
        raise _unauthorised("User not found or inactive")

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
