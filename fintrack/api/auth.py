from __future__ import annotations

import logging
from typing import Awaitable

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..schemas import (
    AccessTokenResponse,
    AuthErrorResponse,
    EmailLoginRequest,
    LoginPhoneRequest,
    OtpSentResponse,
    RegisterRequest,
    ResendOtpRequest,
    VerifyOtpRequest,
)
from ..services.auth import AuthenticationError
from .dependencies import AuthServiceDep, ClientIpDep

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    code: {"model": AuthErrorResponse}
    for code in (400, 401, 404, 409, 410, 429, 500, 502)
}


async def _respond(call: Awaitable[BaseModel]) -> JSONResponse:
    try:
        result = await call
    except AuthenticationError as exc:
        body = AuthErrorResponse(error=exc.message, code=exc.code, remaining=exc.remaining)
        return JSONResponse(
            status_code=exc.status_code,
            content=body.model_dump(mode="json", exclude_none=True),
        )
    except Exception:
        logger.exception("Unexpected authentication failure")
        body = AuthErrorResponse(error="Terjadi kesalahan server.", code="SERVER_ERROR")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json", exclude_none=True),
        )
    return JSONResponse(content=result.model_dump(mode="json", exclude_none=True))


@router.post("/register", response_model=OtpSentResponse, responses=_ERROR_RESPONSES)
async def register(payload: RegisterRequest, service: AuthServiceDep, ip: ClientIpDep) -> JSONResponse:
    """Validate the sign-up form and send a registration code over WhatsApp."""
    return await _respond(
        service.register(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            password=payload.password,
            client_ip=ip,
        )
    )


@router.post("/verify-otp", response_model=AccessTokenResponse, responses=_ERROR_RESPONSES)
async def verify_otp(payload: VerifyOtpRequest, service: AuthServiceDep) -> JSONResponse:
    return await _respond(service.verify_registration(phone=payload.phone, code=payload.code))


@router.post("/login-phone", response_model=OtpSentResponse, responses=_ERROR_RESPONSES)
async def login_phone(payload: LoginPhoneRequest, service: AuthServiceDep, ip: ClientIpDep) -> JSONResponse:
    return await _respond(service.login_phone(phone=payload.phone, email=payload.email, client_ip=ip))


@router.post("/verify-login-otp", response_model=AccessTokenResponse, responses=_ERROR_RESPONSES)
async def verify_login_otp(payload: VerifyOtpRequest, service: AuthServiceDep) -> JSONResponse:
    return await _respond(service.verify_login(phone=payload.phone, code=payload.code))


@router.post("/resend-otp", response_model=OtpSentResponse, responses=_ERROR_RESPONSES)
async def resend_otp(payload: ResendOtpRequest, service: AuthServiceDep) -> JSONResponse:
    return await _respond(service.resend(phone=payload.phone))


@router.post("/login", response_model=AccessTokenResponse, responses=_ERROR_RESPONSES)
async def login(payload: EmailLoginRequest, service: AuthServiceDep, ip: ClientIpDep) -> JSONResponse:
    """Email and password login for accounts that prefer it over OTP."""
    return await _respond(service.login_email(email=payload.email, password=payload.password, client_ip=ip))
