from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..models.otp import OtpPurpose
from ..models.user import User
from ..schemas import AccessTokenResponse, OtpSentResponse, UserCreate, UserRead
from ..utils import jwt
from ..utils.passwords import hash_password, verify_password
from ..utils.sanitize import (
    is_password_strong,
    sanitize_email,
    sanitize_name,
    sanitize_phone,
    to_international_phone,
)
from .otp import OtpError, OtpIssue, OtpManager
from .rate_limit import RATE_LIMITS, RateLimiter
from .users import attach_phone, create_user, get_user, get_user_by_email, get_user_by_phone
from .whatsapp import DeliveryError, FonnteClient

logger = logging.getLogger(__name__)

OTP_SENT_MESSAGE = "Kode verifikasi telah dikirim ke WhatsApp Anda."

_OTP_ERROR_STATUS = {
    "OTP_NOT_FOUND": 404,
    "OTP_EXPIRED": 410,
    "MAX_ATTEMPTS": 429,
    "INVALID_OTP": 400,
    "INVALID_OTP_TYPE": 400,
}


class AuthenticationError(Exception):
    """Auth flow failure carrying the response ``code`` and HTTP status."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        *,
        remaining: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.remaining = remaining


def _create_access_token(*, user_id: str, settings: Settings) -> tuple[str, datetime]:
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(seconds=settings.auth_access_token_ttl_seconds)
    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(payload, settings.auth_secret_key, settings.auth_token_algorithm)
    return token, expires_at


class PhoneAuthService:
    """Registration and login over WhatsApp one-time codes.

    Every failure is an :class:`AuthenticationError` whose ``code`` is stable
    and meant for clients to branch on.
    """

    def __init__(
        self,
        session: AsyncSession,
        otp: OtpManager,
        limiter: RateLimiter,
        sender: FonnteClient,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.otp = otp
        self.limiter = limiter
        self.sender = sender
        self.settings = settings or get_settings()

    def _limit(self, key: str, rule_name: str, message: str, code: str = "RATE_LIMITED") -> None:
        if not self.limiter.check(key, RATE_LIMITS[rule_name]).allowed:
            raise AuthenticationError(message, code, 429)

    @staticmethod
    def _phone(raw: Optional[str], message: str = "Format nomor HP tidak valid. Gunakan format 08xx.") -> str:
        phone = sanitize_phone(raw or "")
        if not phone:
            raise AuthenticationError(message, "INVALID_PHONE")
        return phone

    def _issue_token(self, user: User, *, code: str, message: str, linked: bool = False) -> AccessTokenResponse:
        token, expires_at = _create_access_token(user_id=str(user.id), settings=self.settings)
        return AccessTokenResponse(
            code=code,
            message=message,
            access_token=token,
            token_type="bearer",
            expires_in=self.settings.auth_access_token_ttl_seconds,
            expires_at=expires_at,
            linked=linked,
            user=UserRead.model_validate(user),
        )

    async def _deliver(self, issue: OtpIssue, message: str, failure_code: str = "OTP_SEND_FAILED") -> OtpSentResponse:
        record = issue.record
        dev_otp = None
        if self.sender.is_configured:
            try:
                await self.sender.send_otp(
                    to_international_phone(record.phone_number),
                    record.code,
                    expiry_minutes=self.otp.expiry_minutes,
                )
            except DeliveryError as exc:
                await self.otp.restore(issue)
                raise AuthenticationError("Gagal mengirim kode OTP. Coba lagi.", failure_code, 502) from exc
        else:
            logger.info("[DEV MODE] %s OTP for %s: %s", record.purpose.value, record.phone_number, record.code)
            if self.settings.is_development:
                dev_otp = record.code
        return OtpSentResponse(
            message=message,
            phone=record.phone_number,
            type=record.purpose,
            dev_otp=dev_otp,
        )

    async def _verify(self, phone: str, code: str, purposes: set[OtpPurpose]):
        try:
            return await self.otp.verify(phone, code, purposes)
        except OtpError as exc:
            raise AuthenticationError(
                str(exc), exc.code, _OTP_ERROR_STATUS.get(exc.code, 400), remaining=exc.remaining
            ) from exc

    async def register(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        phone: Optional[str],
        password: Optional[str],
        client_ip: str = "unknown",
    ) -> OtpSentResponse:
        self._limit(f"register:{client_ip}", "register", "Terlalu banyak percobaan. Coba lagi nanti.")
        if not (name and email and phone and password):
            raise AuthenticationError("Semua field wajib diisi.", "MISSING_FIELDS")

        clean_name = sanitize_name(name)
        if not clean_name:
            raise AuthenticationError("Nama harus 2-100 karakter.", "INVALID_NAME")
        clean_email = sanitize_email(email)
        if not clean_email:
            raise AuthenticationError("Format email tidak valid.", "INVALID_EMAIL")
        clean_phone = self._phone(phone)
        if not is_password_strong(password):
            raise AuthenticationError("Password tidak memenuhi persyaratan keamanan.", "WEAK_PASSWORD")

        self._limit(
            f"otp:{clean_phone}",
            "otp_send",
            "Terlalu banyak permintaan OTP. Tunggu beberapa menit.",
            "OTP_RATE_LIMITED",
        )
        if await get_user_by_phone(self.session, clean_phone):
            raise AuthenticationError(
                "Nomor HP sudah terdaftar. Gunakan nomor lain atau masuk.", "PHONE_EXISTS", 409
            )
        if await get_user_by_email(self.session, clean_email):
            raise AuthenticationError(
                "Email sudah terdaftar. Gunakan email lain atau masuk.", "EMAIL_EXISTS", 409
            )

        issue = await self.otp.issue(
            clean_phone,
            OtpPurpose.REGISTER,
            email=clean_email,
            display_name=clean_name,
            password_hash=hash_password(password),
        )
        return await self._deliver(issue, OTP_SENT_MESSAGE)

    async def verify_registration(self, *, phone: Optional[str], code: Optional[str]) -> AccessTokenResponse:
        if not phone or not code:
            raise AuthenticationError("Data tidak lengkap.", "MISSING_FIELDS")
        clean_phone = self._phone(phone, "Format nomor HP tidak valid.")
        self._limit(
            f"otp-verify:{clean_phone}",
            "otp_verify",
            "Terlalu banyak percobaan verifikasi. Tunggu beberapa menit.",
        )

        record = await self._verify(clean_phone, code, {OtpPurpose.REGISTER})
        if not record.email or not record.display_name:
            raise AuthenticationError("Data akun tidak valid. Silakan daftar ulang.", "INVALID_DATA")
        if await get_user_by_email(self.session, record.email):
            raise AuthenticationError("Email sudah terdaftar.", "EMAIL_EXISTS", 409)
        if await get_user_by_phone(self.session, clean_phone):
            raise AuthenticationError("Nomor HP sudah terdaftar.", "PHONE_EXISTS", 409)

        user = await create_user(
            self.session,
            UserCreate(
                display_name=record.display_name,
                email=record.email,
                phone_number=clean_phone,
                phone_verified=True,
                password_hash=record.password_hash,
            ),
        )
        logger.info("Registered user %s for %s", user.id, clean_phone)
        return self._issue_token(user, code="REGISTERED", message="Akun berhasil dibuat!")

    async def login_phone(
        self,
        *,
        phone: Optional[str],
        email: Optional[str] = None,
        client_ip: str = "unknown",
    ) -> OtpSentResponse:
        """Send a login code, or a link code when the phone is new but the email is known."""
        self._limit(f"login-phone:{client_ip}", "login", "Terlalu banyak percobaan. Coba lagi nanti.")
        if not phone:
            raise AuthenticationError("Nomor HP wajib diisi.", "MISSING_FIELDS")
        clean_phone = self._phone(phone)
        self._limit(
            f"otp:{clean_phone}",
            "otp_send",
            "Terlalu banyak permintaan OTP. Tunggu beberapa menit.",
            "OTP_RATE_LIMITED",
        )

        user = await get_user_by_phone(self.session, clean_phone)
        if user is not None:
            issue = await self.otp.issue(
                clean_phone, OtpPurpose.LOGIN, email=user.email, user_id=user.id
            )
            return await self._deliver(issue, OTP_SENT_MESSAGE)

        if not email:
            raise AuthenticationError(
                "Nomor HP belum terdaftar. Masukkan email akun Anda untuk menghubungkan.",
                "PHONE_NOT_FOUND",
                404,
            )
        clean_email = sanitize_email(email)
        if not clean_email:
            raise AuthenticationError("Format email tidak valid.", "INVALID_EMAIL")
        self._limit(f"link-phone:{clean_email}", "link_phone", "Terlalu banyak percobaan. Coba lagi nanti.")

        user = await get_user_by_email(self.session, clean_email)
        if user is None:
            raise AuthenticationError("Akun dengan email tersebut tidak ditemukan.", "EMAIL_NOT_FOUND", 404)
        if user.phone_number and user.phone_number != clean_phone:
            raise AuthenticationError(
                "Akun ini sudah memiliki nomor HP lain. Gunakan nomor tersebut untuk masuk.",
                "PHONE_MISMATCH",
                409,
            )

        issue = await self.otp.issue(clean_phone, OtpPurpose.LINK, email=clean_email, user_id=user.id)
        return await self._deliver(
            issue,
            "Kode verifikasi telah dikirim. Setelah verifikasi, nomor HP akan terhubung ke akun Anda.",
        )

    async def verify_login(self, *, phone: Optional[str], code: Optional[str]) -> AccessTokenResponse:
        if not phone or not code:
            raise AuthenticationError("Data tidak lengkap.", "MISSING_FIELDS")
        clean_phone = self._phone(phone, "Format nomor HP tidak valid.")
        self._limit(
            f"otp-verify:{clean_phone}",
            "otp_verify",
            "Terlalu banyak percobaan verifikasi. Tunggu beberapa menit.",
        )

        record = await self._verify(clean_phone, code, {OtpPurpose.LOGIN, OtpPurpose.LINK})
        if record.user_id is None:
            raise AuthenticationError("Data akun tidak valid. Silakan coba lagi.", "INVALID_DATA")
        user = await get_user(self.session, record.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Akun tidak ditemukan.", "USER_NOT_FOUND", 404)

        linked = record.purpose == OtpPurpose.LINK
        if linked:
            owner = await get_user_by_phone(self.session, clean_phone)
            if owner is not None and owner.id != user.id:
                raise AuthenticationError("Nomor HP sudah terdaftar.", "PHONE_EXISTS", 409)
            user = await attach_phone(self.session, user, clean_phone)
            message = "Nomor HP berhasil dihubungkan!"
        else:
            message = "Berhasil masuk!"
        return self._issue_token(user, code="LOGGED_IN", message=message, linked=linked)

    async def resend(self, *, phone: Optional[str]) -> OtpSentResponse:
        clean_phone = self._phone(phone, "Format nomor HP tidak valid.")
        self._limit(f"otp:{clean_phone}", "otp_send", "Terlalu banyak permintaan. Tunggu beberapa menit.")
        try:
            issue = await self.otp.reissue(clean_phone)
        except OtpError as exc:
            raise AuthenticationError(
                "Tidak ada permintaan OTP yang menunggu. Silakan ulangi.", "NOT_FOUND", 404
            ) from exc
        return await self._deliver(issue, "Kode OTP baru telah dikirim.")

    async def login_email(
        self,
        *,
        email: Optional[str],
        password: Optional[str],
        client_ip: str = "unknown",
    ) -> AccessTokenResponse:
        self._limit(f"login:{client_ip}", "login", "Terlalu banyak percobaan. Coba lagi nanti.")
        if not email or not password:
            raise AuthenticationError("Email dan password wajib diisi.", "MISSING_FIELDS")
        clean_email = sanitize_email(email)
        if not clean_email:
            raise AuthenticationError("Format email tidak valid.", "INVALID_EMAIL")
        user = await get_user_by_email(self.session, clean_email)
        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            raise AuthenticationError("Email atau password salah.", "INVALID_CREDENTIALS", 401)
        return self._issue_token(user, code="LOGGED_IN", message="Berhasil masuk!")
