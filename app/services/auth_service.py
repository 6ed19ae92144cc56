"""Account lifecycle: registration, verification, login and password management.

Tokens for email verification and password reset are random hex strings
stored with a UTC expiry; access tokens are stateless JWTs.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.core.auth import ROLE_USER, VALID_ROLES
from app.core.config import settings
from app.core.errors import AuthenticationAppError, NotFoundAppError, ValidationAppError
from app.core.security import (
    RESET_TOKEN_BYTES,
    VERIFICATION_TOKEN_BYTES,
    create_access_token,
    generate_token,
    hash_password,
    verify_password,
)
from app.db.database import row_to_dict, transaction, utc_timestamp
from app.services.email_service import EmailService
from app.utils.text_normalizer import is_valid_email, normalize_email, normalize_text

logger = logging.getLogger(__name__)

# Columns that never leave the service layer
_PRIVATE_USER_COLUMNS = ("password", "verification_token", "verification_token_expires")


def public_user(row: dict[str, Any] | sqlite3.Row | None) -> dict[str, Any] | None:
    """Strip credentials and account tokens from a users row."""

    if row is None:
        return None
    data = dict(row)
    for column in _PRIVATE_USER_COLUMNS:
        data.pop(column, None)
    data["email_verified"] = bool(data.get("email_verified"))
    return data


def find_user_by_email(conn: sqlite3.Connection, email: str) -> dict[str, Any] | None:
    return row_to_dict(
        conn.execute("SELECT * FROM users WHERE email = ?", (normalize_email(email),)).fetchone()
    )


def get_user_row(conn: sqlite3.Connection, user_id: int) -> dict[str, Any]:
    row = row_to_dict(conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone())
    if row is None:
        raise NotFoundAppError(
            code="user_not_found",
            message="User not found",
            details={"resource": "user", "resource_id": user_id},
        )
    return row


def validate_email(email: str | None) -> str:
    cleaned = normalize_email(email)
    if not is_valid_email(cleaned):
        raise ValidationAppError(
            code="invalid_email",
            message="Invalid email format",
            details={"field": "email"},
        )
    return cleaned


def validate_new_password(password: str | None, *, field: str = "password") -> str:
    minimum = settings.auth.password_min_length
    if not password or len(password) < minimum:
        raise ValidationAppError(
            code="password_too_short",
            message=f"Password must be at least {minimum} characters long",
            details={"field": field},
        )
    return password


def validate_role(role: str | None) -> str:
    if role is None or role == "":
        return ROLE_USER
    normalized = role.strip().upper()
    if normalized not in VALID_ROLES:
        raise ValidationAppError(
            code="invalid_role",
            message=f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}",
            details={"field": "role"},
        )
    return normalized


def ensure_email_available(conn: sqlite3.Connection, email: str, *, exclude_id: int | None = None) -> None:
    row = conn.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
    if row is not None and row["id"] != exclude_id:
        raise ValidationAppError(
            code="email_in_use",
            message="Email already in use",
            details={"field": "email"},
        )


def verification_token_with_expiry() -> tuple[str, str]:
    token = generate_token(VERIFICATION_TOKEN_BYTES)
    expires = utc_timestamp(settings.auth.verification_token_hours * 3600)
    return token, expires


class AuthService:
    """Account operations bound to one request-scoped connection."""

    def __init__(self, conn: sqlite3.Connection, email_service: EmailService) -> None:
        self.conn = conn
        self.email_service = email_service

    def register(
        self,
        *,
        name: str | None,
        email: str | None,
        password: str | None,
        role: str | None = None,
    ) -> int:
        """Create an unverified account and email its verification link.

        Returns:
            int: The new user id.
        """

        cleaned_name = normalize_text(name)
        if not cleaned_name or not email or not password:
            raise ValidationAppError(
                code="missing_fields",
                message="Name, email and password are required",
            )
        cleaned_email = validate_email(email)
        validate_new_password(password)
        resolved_role = validate_role(role)
        ensure_email_available(self.conn, cleaned_email)

        token, expires = verification_token_with_expiry()
        user_id = self.conn.execute(
            """
            INSERT INTO users (name, email, password, email_verified, verification_token,
                               verification_token_expires, role)
            VALUES (?, ?, ?, 0, ?, ?, ?)
            """,
            (cleaned_name, cleaned_email, hash_password(password), token, expires, resolved_role),
        ).lastrowid

        logger.info("auth.registered", extra={"user_id": user_id, "role": resolved_role})
        self.email_service.send_verification_email(cleaned_email, token)
        return user_id

    def verify_email(self, token: str) -> None:
        row = self.conn.execute(
            "SELECT id FROM users WHERE verification_token = ? AND verification_token_expires > ?",
            (token, utc_timestamp()),
        ).fetchone()
        if row is None:
            raise ValidationAppError(
                code="invalid_verification_token",
                message="Invalid or expired verification token",
            )

        self.conn.execute(
            """
            UPDATE users
            SET email_verified = 1, verification_token = NULL, verification_token_expires = NULL,
                updatedAt = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (row["id"],),
        )
        logger.info("auth.email_verified", extra={"user_id": row["id"]})

    def resend_verification(self, email: str | None) -> None:
        if not email:
            raise ValidationAppError(code="email_required", message="Email is required", details={"field": "email"})
        user = find_user_by_email(self.conn, email)
        if user is None:
            raise NotFoundAppError(code="user_not_found", message="User not found")
        if user["email_verified"]:
            raise ValidationAppError(code="already_verified", message="Email is already verified")

        token, expires = verification_token_with_expiry()
        self.conn.execute(
            """
            UPDATE users
            SET verification_token = ?, verification_token_expires = ?, updatedAt = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (token, expires, user["id"]),
        )
        logger.info("auth.verification_resent", extra={"user_id": user["id"]})
        self.email_service.send_verification_email(user["email"], token)

    def login(self, email: str | None, password: str | None) -> tuple[dict[str, Any], str]:
        """Check credentials and issue an access token.

        Returns:
            Tuple of (public user, JWT).
        """

        if not email or not password:
            raise ValidationAppError(
                code="missing_fields",
                message="Email and password are required",
            )

        user = find_user_by_email(self.conn, email)
        if user is None or not verify_password(password, user["password"]):
            logger.info("auth.login_failed", extra={"reason": "invalid_credentials"})
            raise AuthenticationAppError(
                code="invalid_credentials",
                message="Invalid credentials",
            )
        if not user["email_verified"]:
            logger.info("auth.login_failed", extra={"reason": "email_not_verified", "user_id": user["id"]})
            raise AuthenticationAppError(
                code="email_not_verified",
                message="Email not verified",
                details={"needs_verification": True},
            )

        logger.info("auth.login_succeeded", extra={"user_id": user["id"], "role": user["role"]})
        return public_user(user), create_access_token(user)

    def get_profile(self, user_id: int) -> dict[str, Any]:
        return public_user(get_user_row(self.conn, user_id))

    def change_password(self, user_id: int, current_password: str | None, new_password: str | None) -> None:
        if not current_password or not new_password:
            raise ValidationAppError(
                code="missing_fields",
                message="Current password and new password are required",
            )
        validate_new_password(new_password, field="newPassword")
        user = get_user_row(self.conn, user_id)
        if not verify_password(current_password, user["password"]):
            raise AuthenticationAppError(
                code="invalid_credentials",
                message="Current password is incorrect",
            )

        self.conn.execute(
            "UPDATE users SET password = ?, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
            (hash_password(new_password), user_id),
        )
        logger.info("auth.password_changed", extra={"user_id": user_id})

    def request_password_reset(self, email: str | None) -> str | None:
        """Issue a reset token for a known account.

        Returns:
            The token, or None when no account matches (callers must not
            reveal the difference to clients).
        """

        if not email:
            raise ValidationAppError(code="email_required", message="Email is required", details={"field": "email"})

        user = find_user_by_email(self.conn, email)
        if user is None:
            logger.info("auth.password_reset_unknown_email")
            return None

        token = generate_token(RESET_TOKEN_BYTES)
        expires = utc_timestamp(settings.auth.reset_token_expiry_seconds)
        with transaction(self.conn):
            self.conn.execute("DELETE FROM reset_tokens WHERE userId = ?", (user["id"],))
            self.conn.execute(
                "INSERT INTO reset_tokens (userId, token, expiresAt) VALUES (?, ?, ?)",
                (user["id"], token, expires),
            )

        logger.info("auth.password_reset_requested", extra={"user_id": user["id"]})
        self.email_service.send_password_reset_email(user["email"], token)
        return token

    def reset_password(self, token: str | None, new_password: str | None) -> None:
        if not token or not new_password:
            raise ValidationAppError(
                code="missing_fields",
                message="Token and new password are required",
            )
        validate_new_password(new_password, field="newPassword")

        row = self.conn.execute(
            "SELECT userId FROM reset_tokens WHERE token = ? AND expiresAt > ?",
            (token, utc_timestamp()),
        ).fetchone()
        if row is None:
            raise ValidationAppError(
                code="invalid_reset_token",
                message="Invalid or expired reset token",
            )

        user_id = row["userId"]
        with transaction(self.conn):
            self.conn.execute(
                "UPDATE users SET password = ?, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
                (hash_password(new_password), user_id),
            )
            self.conn.execute("DELETE FROM reset_tokens WHERE userId = ?", (user_id,))
        logger.info("auth.password_reset_completed", extra={"user_id": user_id})

    def update_profile(self, user_id: int, name: str | None) -> dict[str, Any]:
        cleaned = normalize_text(name)
        if not cleaned:
            raise ValidationAppError(code="name_required", message="Name is required", details={"field": "name"})
        get_user_row(self.conn, user_id)

        self.conn.execute(
            "UPDATE users SET name = ?, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
            (cleaned, user_id),
        )
        logger.info("auth.profile_updated", extra={"user_id": user_id})
        return self.get_profile(user_id)

    def delete_account(self, user_id: int, password: str | None) -> None:
        if not password:
            raise ValidationAppError(
                code="password_required",
                message="Password is required to delete account",
                details={"field": "password"},
            )
        user = get_user_row(self.conn, user_id)
        if not verify_password(password, user["password"]):
            raise AuthenticationAppError(code="invalid_credentials", message="Incorrect password")

        with transaction(self.conn):
            self.conn.execute("DELETE FROM reset_tokens WHERE userId = ?", (user_id,))
            self.conn.execute("DELETE FROM user_collections WHERE userId = ?", (user_id,))
            self.conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        logger.info("auth.account_deleted", extra={"user_id": user_id})
