from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Collection, Optional

from ..models.base import utcnow
from ..models.otp import OtpPurpose
from ..schemas.otp import OneTimeCodeRecord
from .repositories import Repository

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=5)
DEFAULT_MAX_ATTEMPTS = 5


class OtpError(Exception):
    """Base class for verification failures; ``code`` is the API discriminator."""

    code = "OTP_ERROR"

    def __init__(self, message: str, *, remaining: Optional[int] = None) -> None:
        super().__init__(message)
        self.remaining = remaining


class OtpNotFoundError(OtpError):
    code = "OTP_NOT_FOUND"


class OtpPurposeError(OtpError):
    code = "INVALID_OTP_TYPE"


class OtpExpiredError(OtpError):
    code = "OTP_EXPIRED"


class OtpExhaustedError(OtpError):
    code = "MAX_ATTEMPTS"


class OtpMismatchError(OtpError):
    code = "INVALID_OTP"


def generate_otp(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


@dataclass(frozen=True)
class OtpIssue:
    """Result of issuing a code; ``previous`` is what the new record replaced."""

    record: OneTimeCodeRecord
    previous: Optional[OneTimeCodeRecord] = None


class OtpManager:
    """Issues, re-issues and verifies one-time codes keyed by phone number.

    At most one record exists per phone number. A correct code consumes the
    record; wrong codes count towards ``max_attempts`` after which the record
    is discarded and a new code must be requested.
    """

    def __init__(
        self,
        repository: Repository[OneTimeCodeRecord],
        *,
        clock: Callable[[], datetime] = utcnow,
        code_factory: Callable[[], str] = generate_otp,
        ttl: timedelta = DEFAULT_TTL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self.repository = repository
        self.clock = clock
        self.code_factory = code_factory
        self.ttl = ttl
        self.max_attempts = max_attempts

    @property
    def expiry_minutes(self) -> int:
        return int(self.ttl.total_seconds() // 60)

    async def issue(self, phone: str, purpose: OtpPurpose, **fields: Any) -> OtpIssue:
        previous = await self.repository.get(phone)
        now = self.clock()
        record = OneTimeCodeRecord(
            phone_number=phone,
            purpose=purpose,
            code=self.code_factory(),
            attempt_count=0,
            created_at=now,
            expires_at=now + self.ttl,
            **fields,
        )
        await self.repository.set(phone, record)
        logger.info("Issued %s code for %s", purpose.value, phone)
        return OtpIssue(record=record, previous=previous)

    async def reissue(self, phone: str) -> OtpIssue:
        previous = await self.repository.get(phone)
        if previous is None:
            raise OtpNotFoundError("Tidak ada permintaan OTP untuk nomor ini")
        now = self.clock()
        record = previous.model_copy(
            update={
                "code": self.code_factory(),
                "attempt_count": 0,
                "created_at": now,
                "expires_at": now + self.ttl,
            }
        )
        await self.repository.set(phone, record)
        return OtpIssue(record=record, previous=previous)

    async def restore(self, issue: OtpIssue) -> None:
        """Undo ``issue`` after the code could not be delivered."""
        phone = issue.record.phone_number
        if issue.previous is None:
            await self.repository.delete(phone)
        else:
            await self.repository.set(phone, issue.previous)

    async def verify(
        self,
        phone: str,
        code: str,
        purposes: Optional[Collection[OtpPurpose]] = None,
    ) -> OneTimeCodeRecord:
        record = await self.repository.get(phone)
        if record is None:
            raise OtpNotFoundError("Kode OTP tidak ditemukan. Silakan minta kode baru.")

        if purposes is not None and record.purpose not in purposes:
            raise OtpPurposeError("Jenis OTP tidak sesuai")

        if self.clock() > record.expires_at:
            await self.repository.delete(phone)
            raise OtpExpiredError("Kode OTP sudah kedaluwarsa. Silakan minta kode baru.")

        if record.attempt_count >= self.max_attempts:
            await self.repository.delete(phone)
            raise OtpExhaustedError("Terlalu banyak percobaan. Silakan minta kode baru.")

        if not hmac.compare_digest(record.code.encode(), code.strip().encode()):
            attempts = record.attempt_count + 1
            await self.repository.set(phone, record.model_copy(update={"attempt_count": attempts}))
            remaining = max(self.max_attempts - attempts, 0)
            raise OtpMismatchError(
                f"Kode OTP salah. Sisa percobaan: {remaining}", remaining=remaining
            )

        await self.repository.delete(phone)
        return record
