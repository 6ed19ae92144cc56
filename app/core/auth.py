"""Bearer-token authentication dependencies.

Design principles:
- Dependency Injection: used via FastAPI Depends() for loose coupling
- Stateless: the JWT carries id/email/role; logout is client-side
- Tokens of deleted accounts are rejected (the user row must still exist)
- Three flavors: required (401), optional (anonymous allowed), admin (403)
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header

from app.core.errors import AuthenticationAppError, PermissionAppError
from app.core.security import decode_access_token
from app.db.database import get_connection

logger = logging.getLogger(__name__)

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"
VALID_ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass(frozen=True)
class CurrentUser:
    """Identity extracted from a verified access token."""

    id: int
    email: str
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Examples:
        >>> extract_bearer_token("Bearer abc")
        'abc'
        >>> extract_bearer_token("Basic abc") is None
        True
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def authenticate_token(token: str) -> CurrentUser:
    claims = decode_access_token(token)
    return CurrentUser(
        id=claims["id"],
        email=claims["email"],
        role=claims.get("role") or ROLE_USER,
    )


def ensure_user_exists(conn: sqlite3.Connection, user: CurrentUser) -> CurrentUser:
    """Reject identities whose account was deleted after the token was issued."""
    row = conn.execute("SELECT id FROM users WHERE id = ?", (user.id,)).fetchone()
    if row is None:
        raise AuthenticationAppError(
            code="user_not_found",
            message="User not found",
        )
    return user


async def get_current_user(
    conn: Annotated[sqlite3.Connection, Depends(get_connection)],
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """FastAPI dependency requiring a valid bearer token.

    Raises:
        AuthenticationAppError: 401 when the token is missing, malformed or
            expired, or when its account no longer exists.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        logger.info("auth.missing_token")
        raise AuthenticationAppError(
            code="authentication_required",
            message="Authentication required",
        )

    try:
        user = ensure_user_exists(conn, authenticate_token(token))
    except AuthenticationAppError as exc:
        logger.info("auth.rejected", extra={"reason": exc.code})
        raise

    logger.debug("auth.success", extra={"user_id": user.id, "role": user.role})
    return user


async def get_optional_user(
    conn: Annotated[sqlite3.Connection, Depends(get_connection)],
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser | None:
    """Like get_current_user, but anonymous or invalid tokens yield None."""
    token = extract_bearer_token(authorization)
    if token is None:
        return None
    try:
        return ensure_user_exists(conn, authenticate_token(token))
    except AuthenticationAppError as exc:
        logger.info("auth.optional_token_ignored", extra={"reason": exc.code})
        return None


async def require_admin(
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Allow only ADMIN accounts.

    Raises:
        PermissionAppError: 403 for authenticated non-admins.
    """
    if not user.is_admin:
        logger.warning("auth.admin_denied", extra={"user_id": user.id})
        raise PermissionAppError(
            code="admin_required",
            message="Access denied: Admin privilege required",
        )
    return user
