"""Password hashing, access tokens and random account tokens.

- Passwords are hashed with bcrypt (AUTH_BCRYPT_ROUNDS, default 10).
- Access tokens are HS256 JWTs carrying ``id``, ``email`` and ``role``.
- Verification/reset tokens are random hex strings.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import bcrypt
import jwt

from app.core.config import settings
from app.core.errors import AuthenticationAppError, ValidationAppError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72

VERIFICATION_TOKEN_BYTES = 32
RESET_TOKEN_BYTES = 20


def hash_password(plain: str) -> str:
    """Hash a plaintext password with bcrypt.

    Raises:
        ValidationAppError: If the password exceeds bcrypt's 72-byte input.
    """

    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValidationAppError(
            code="password_too_long",
            message=f"Password must be at most {BCRYPT_MAX_BYTES} bytes",
            details={"field": "password"},
        )
    salt = bcrypt.gensalt(rounds=settings.auth.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    if not plain or not hashed:
        return False
    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        logger.warning("auth.malformed_password_hash")
        return False


def create_access_token(user: Mapping[str, Any]) -> str:
    """Issue a signed JWT for a user row (expects id, email, role)."""

    now = datetime.now(timezone.utc)
    payload = {
        "id": user["id"],
        "email": user["email"],
        "role": user["role"],
        "iat": now,
        "exp": now + timedelta(hours=settings.auth.jwt_expires_hours),
    }
    return jwt.encode(
        payload,
        settings.auth.jwt_secret,
        algorithm=settings.auth.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Validate a JWT and return its claims.

    Raises:
        AuthenticationAppError: ``token_expired`` or ``invalid_token``.
    """

    try:
        claims = jwt.decode(
            token,
            settings.auth.jwt_secret,
            algorithms=[settings.auth.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationAppError(
            code="token_expired",
            message="Invalid or expired token",
        ) from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationAppError(
            code="invalid_token",
            message="Invalid or expired token",
        ) from exc

    if not isinstance(claims.get("id"), int) or not claims.get("email"):
        raise AuthenticationAppError(
            code="invalid_token",
            message="Invalid or expired token",
        )
    return claims


def generate_token(nbytes: int = VERIFICATION_TOKEN_BYTES) -> str:
    """Random hex token (2 * nbytes characters)."""

    return secrets.token_hex(nbytes)
