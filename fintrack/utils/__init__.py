from . import jwt
from .currency import convert_currency, format_compact, format_rupiah
from .jwt import decode, encode, ExpiredSignatureError, InvalidTokenError, JWTError
from .passwords import hash_password, verify_password
from .sanitize import (
    generate_link_code,
    is_password_strong,
    sanitize_email,
    sanitize_name,
    sanitize_phone,
    sanitize_string,
)

__all__ = [
    "jwt",
    "encode",
    "decode",
    "ExpiredSignatureError",
    "InvalidTokenError",
    "JWTError",
    "convert_currency",
    "format_compact",
    "format_rupiah",
    "hash_password",
    "verify_password",
    "generate_link_code",
    "is_password_strong",
    "sanitize_email",
    "sanitize_name",
    "sanitize_phone",
    "sanitize_string",
]
