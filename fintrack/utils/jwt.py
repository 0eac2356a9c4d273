"""Minimal HMAC JSON Web Tokens for API access tokens."""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import time
from hashlib import sha256, sha384, sha512
from typing import Any, Callable, Mapping, Sequence

_DIGESTS: dict[str, Callable[..., Any]] = {
    "HS256": sha256,
    "HS384": sha384,
    "HS512": sha512,
}


class JWTError(Exception):
    """Base class for JWT-related errors."""


class InvalidTokenError(JWTError):
    """Raised when a token cannot be decoded or the signature is invalid."""


class ExpiredSignatureError(JWTError):
    """Raised when a token has expired."""


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(segment + padding)
    except (binascii.Error, ValueError) as exc:
        raise InvalidTokenError("Token segment is not valid base64") from exc


def _load_segment(segment: str) -> dict[str, Any]:
    try:
        data = json.loads(_b64url_decode(segment))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidTokenError("Token segment is not valid JSON") from exc
    if not isinstance(data, dict):
        raise InvalidTokenError("Token segment must be a JSON object")
    return data


def _sign(message: bytes, secret: str, algorithm: str) -> bytes:
    digest = _DIGESTS.get(algorithm)
    if digest is None:
        raise InvalidTokenError(f"Unsupported JWT algorithm: {algorithm}")
    return hmac.new(secret.encode("utf-8"), message, digest).digest()


def _dump(data: Mapping[str, Any]) -> str:
    return _b64url_encode(json.dumps(data, separators=(",", ":"), sort_keys=True).encode())


def encode(payload: Mapping[str, Any], secret: str, algorithm: str = "HS256") -> str:
    header_segment = _dump({"alg": algorithm, "typ": "JWT"})
    payload_segment = _dump(payload)
    signing_input = f"{header_segment}.{payload_segment}".encode()
    signature = _b64url_encode(_sign(signing_input, secret, algorithm))
    return f"{header_segment}.{payload_segment}.{signature}"


def decode(
    token: str,
    secret: str,
    algorithms: Sequence[str] | None = None,
    *,
    verify_exp: bool = True,
    leeway: int = 0,
) -> dict[str, Any]:
    """Verify the signature and time claims, returning the payload."""
    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidTokenError("Token structure is invalid")
    header_segment, payload_segment, signature_segment = parts

    algorithm = _load_segment(header_segment).get("alg")
    if not algorithm:
        raise InvalidTokenError("Token header missing algorithm")
    if algorithms and algorithm not in algorithms:
        raise InvalidTokenError("Token uses an unexpected signing algorithm")

    signing_input = f"{header_segment}.{payload_segment}".encode()
    expected = _sign(signing_input, secret, algorithm)
    if not hmac.compare_digest(expected, _b64url_decode(signature_segment)):
        raise InvalidTokenError("Token signature mismatch")

    payload = _load_segment(payload_segment)
    now = int(time.time())
    if verify_exp and "exp" in payload and int(payload["exp"]) + leeway < now:
        raise ExpiredSignatureError("Token has expired")
    if "nbf" in payload and int(payload["nbf"]) - leeway > now:
        raise InvalidTokenError("Token is not valid yet")
    return payload


__all__ = ["encode", "decode", "JWTError", "InvalidTokenError", "ExpiredSignatureError"]
