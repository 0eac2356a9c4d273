from __future__ import annotations

import re
import secrets
from typing import Optional

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_PHONE_RE = re.compile(r"^08\d{8,11}$")
_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

LINK_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def sanitize_string(value: str) -> str:
    """Strip script blocks and HTML tags, then unescape the basic entities."""
    cleaned = _SCRIPT_RE.sub("", value)
    cleaned = _TAG_RE.sub("", cleaned)
    cleaned = cleaned.replace("&lt;", "<").replace("&gt;", ">").replace("&amp;", "&")
    return cleaned.strip()


def sanitize_email(value: str) -> Optional[str]:
    email = value.strip().lower()
    return email if _EMAIL_RE.match(email) else None


def sanitize_phone(value: str) -> Optional[str]:
    """Normalise an Indonesian mobile number to the local ``08...`` form.

    ``+62 812-3456-7890``, ``6281234567890`` and ``81234567890`` all become
    ``081234567890``. Returns ``None`` when the result is not 10-13 digits
    starting with ``08``.
    """
    digits = re.sub(r"\D", "", value)
    if digits.startswith("62"):
        digits = "0" + digits[2:]
    elif not digits.startswith("0"):
        digits = "0" + digits
    return digits if _PHONE_RE.match(digits) else None


def to_international_phone(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    if digits.startswith("0"):
        return "62" + digits[1:]
    if digits.startswith("62"):
        return digits
    return "62" + digits


def sanitize_name(value: str) -> Optional[str]:
    name = sanitize_string(value)
    if len(name) < 2 or len(name) > 100:
        return None
    return name


def is_password_strong(password: str) -> bool:
    return (
        len(password) >= 8
        and re.search(r"[A-Z]", password) is not None
        and re.search(r"[a-z]", password) is not None
        and re.search(r"[0-9]", password) is not None
        and _SPECIAL_RE.search(password) is not None
    )


def generate_link_code(length: int = 6) -> str:
    # Ambiguous characters (0/O, 1/I) are left out of the alphabet.
    return "".join(secrets.choice(LINK_CODE_ALPHABET) for _ in range(length))
