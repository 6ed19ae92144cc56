"""Administrative user management."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.core.errors import ValidationAppError
from app.core.security import hash_password
from app.db.database import transaction
from app.schemas.user import AdminUserCreate, AdminUserUpdate
from app.services.auth_service import (
    ensure_email_available,
    get_user_row,
    public_user,
    validate_email,
    validate_new_password,
    validate_role,
    verification_token_with_expiry,
)
from app.services.collection_service import CollectionService
from app.services.email_service import EmailService
from app.utils.text_normalizer import normalize_text

logger = logging.getLogger(__name__)


class UserAdminService:
    def __init__(self, conn: sqlite3.Connection, email_service: EmailService) -> None:
        self.conn = conn
        self.email_service = email_service

    def list_users(self) -> list[dict[str, Any]]:
        rows = self.conn.execute("SELECT * FROM users ORDER BY name COLLATE NOCASE, id").fetchall()
        return [public_user(row) for row in rows]

    def get_user(self, user_id: int) -> dict[str, Any]:
        """User profile plus the books in their collection."""

        user = public_user(get_user_row(self.conn, user_id))
        user["books"] = CollectionService(self.conn).list_books(user_id)
        return user

    def create_user(self, payload: AdminUserCreate) -> dict[str, Any]:
        """Create an account on someone's behalf.

        Accounts start verified unless a verification email is requested,
        in which case they start unverified with a fresh token.
        """

        name = normalize_text(payload.name)
        if not name or not payload.email or not payload.password:
            raise ValidationAppError(
                code="missing_fields",
                message="Name, email and password are required",
            )
        email = validate_email(payload.email)
        validate_new_password(payload.password)
        role = validate_role(payload.role)
        ensure_email_available(self.conn, email)

        token: str | None = None
        expires: str | None = None
        verified = payload.email_verified
        if payload.send_verification_email:
            token, expires = verification_token_with_expiry()
            verified = False

        user_id = self.conn.execute(
            """
            INSERT INTO users (name, email, password, email_verified, verification_token,
                               verification_token_expires, role)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (name, email, hash_password(payload.password), int(verified), token, expires, role),
        ).lastrowid

        logger.info(
            "admin.user_created",
            extra={"user_id": user_id, "role": role, "verification_email": token is not None},
        )
        if token is not None:
            self.email_service.send_verification_email(email, token)
        return public_user(get_user_row(self.conn, user_id))

    def update_user(self, user_id: int, payload: AdminUserUpdate) -> dict[str, Any]:
        get_user_row(self.conn, user_id)

        columns: dict[str, Any] = {}
        if payload.name is not None:
            name = normalize_text(payload.name)
            if not name:
                raise ValidationAppError(code="name_required", message="Name cannot be empty", details={"field": "name"})
            columns["name"] = name
        if payload.email is not None:
            email = validate_email(payload.email)
            ensure_email_available(self.conn, email, exclude_id=user_id)
            columns["email"] = email
        if payload.role is not None:
            columns["role"] = validate_role(payload.role)
        if payload.email_verified is not None:
            columns["email_verified"] = int(payload.email_verified)
            if payload.email_verified:
                columns["verification_token"] = None
                columns["verification_token_expires"] = None

        if not columns:
            raise ValidationAppError(code="no_fields_to_update", message="No valid fields to update")

        assignments = ", ".join(f"{column} = ?" for column in columns)
        self.conn.execute(
            f"UPDATE users SET {assignments}, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
            (*columns.values(), user_id),
        )
        logger.info("admin.user_updated", extra={"user_id": user_id, "fields": sorted(columns)})
        return public_user(get_user_row(self.conn, user_id))

    def delete_user(self, user_id: int) -> None:
        get_user_row(self.conn, user_id)
        with transaction(self.conn):
            self.conn.execute("DELETE FROM reset_tokens WHERE userId = ?", (user_id,))
            self.conn.execute("DELETE FROM user_collections WHERE userId = ?", (user_id,))
            self.conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        logger.info("admin.user_deleted", extra={"user_id": user_id})

    def change_password(self, user_id: int, new_password: str | None) -> None:
        validate_new_password(new_password, field="newPassword")
        get_user_row(self.conn, user_id)
        self.conn.execute(
            "UPDATE users SET password = ?, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
            (hash_password(new_password), user_id),
        )
        logger.info("admin.user_password_changed", extra={"user_id": user_id})
