"""Security, password and token helper functions."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import bcrypt
import jwt

from gym_backend.core.constants import utcnow


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""

    hashed_password = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed_password.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify plain password against stored hash."""

    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def encode_token(
    claims: dict[str, Any],
    *,
    secret_key: str,
    algorithm: str,
    expires_in: timedelta,
) -> str:
    """Sign claims into a JWT that expires after ``expires_in``."""

    issued_at = utcnow()
    payload = {**claims, "iat": issued_at, "exp": issued_at + expires_in}
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_token(token: str, *, secret_key: str, algorithm: str) -> dict[str, Any]:
    """Verify signature and expiry, returning the claims.

    Raises ``jwt.ExpiredSignatureError`` or ``jwt.InvalidTokenError``.
    """

    return jwt.decode(token, secret_key, algorithms=[algorithm])
