from __future__ import annotations

import base64
import hmac
import secrets
from hashlib import pbkdf2_hmac

_ALGORITHM = "pbkdf2_sha256"
_ITERATIONS = 390_000


def hash_password(password: str, *, iterations: int = _ITERATIONS) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<digest>`` for storage."""
    salt = secrets.token_hex(16)
    digest = pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), iterations)
    encoded = base64.b64encode(digest).decode("ascii")
    return f"{_ALGORITHM}${iterations}${salt}${encoded}"


def verify_password(password: str, stored: str | None) -> bool:
    if not stored:
        return False
    try:
        algorithm, iterations, salt, encoded = stored.split("$", 3)
    except ValueError:
        return False
    if algorithm != _ALGORITHM:
        return False
    digest = pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), int(iterations))
    return hmac.compare_digest(base64.b64encode(digest).decode("ascii"), encoded)
