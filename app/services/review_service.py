"""Book reviews: anonymous or authenticated authors, owner/admin moderation."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.core.auth import CurrentUser
from app.core.errors import NotFoundAppError, PermissionAppError, ValidationAppError
from app.db.database import row_to_dict, transaction
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.utils.text_normalizer import normalize_text

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

# username prefers the linked account's current name over the stored one
_REVIEW_SELECT = """
    SELECT r.id, r.bookId, r.userId,
           COALESCE(u.name, r.username) AS username,
           r.rating, r.comment, r.createdAt, r.updatedAt,
           u.name AS user_name, b.title AS book_title
    FROM reviews r
    LEFT JOIN users u ON u.id = r.userId
    LEFT JOIN books b ON b.id = r.bookId
"""


def _validate_rating(rating: int | None) -> int:
    if rating is None or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationAppError(
            code="invalid_rating",
            message=f"Rating must be between {MIN_RATING} and {MAX_RATING}",
            details={"field": "rating"},
        )
    return rating


def _validate_comment(comment: str | None) -> str:
    cleaned = normalize_text(comment)
    if not cleaned:
        raise ValidationAppError(
            code="comment_required",
            message="Comment is required",
            details={"field": "comment"},
        )
    return cleaned


class ReviewService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def list_for_book(self, book_id: int) -> list[dict[str, Any]]:
        rows = self.conn.execute(
            f"{_REVIEW_SELECT} WHERE r.bookId = ? ORDER BY r.createdAt DESC, r.id DESC",
            (book_id,),
        ).fetchall()
        return [dict(row) for row in rows]

    def list_all(self) -> list[dict[str, Any]]:
        rows = self.conn.execute(
            f"{_REVIEW_SELECT} ORDER BY r.createdAt DESC, r.id DESC"
        ).fetchall()
        return [dict(row) for row in rows]

    def get_review(self, review_id: int) -> dict[str, Any]:
        review = row_to_dict(
            self.conn.execute(f"{_REVIEW_SELECT} WHERE r.id = ?", (review_id,)).fetchone()
        )
        if review is None:
            raise NotFoundAppError(
                code="review_not_found",
                message="Review not found",
                details={"resource": "review", "resource_id": review_id},
            )
        return review

    def _resolve_username(self, requested: str | None, user: CurrentUser | None) -> str:
        username = normalize_text(requested)
        if username:
            return username
        if user is not None:
            row = self.conn.execute("SELECT name FROM users WHERE id = ?", (user.id,)).fetchone()
            if row:
                return row["name"]
        raise ValidationAppError(
            code="username_required",
            message="Username is required",
            details={"field": "username"},
        )

    def create_review(
        self,
        book_id: int,
        payload: ReviewCreate,
        *,
        user: CurrentUser | None = None,
    ) -> dict[str, Any]:
        if not self.conn.execute("SELECT 1 FROM books WHERE id = ?", (book_id,)).fetchone():
            raise NotFoundAppError(
                code="book_not_found",
                message="Book not found",
                details={"resource": "book", "resource_id": book_id},
            )
        rating = _validate_rating(payload.rating)
        comment = _validate_comment(payload.comment)
        username = self._resolve_username(payload.username, user)

        with transaction(self.conn):
            review_id = self.conn.execute(
                "INSERT INTO reviews (bookId, userId, username, rating, comment) VALUES (?, ?, ?, ?, ?)",
                (book_id, user.id if user else None, username, rating, comment),
            ).lastrowid

        logger.info(
            "review.created",
            extra={"review_id": review_id, "book_id": book_id, "authenticated": user is not None},
        )
        return self.get_review(review_id)

    @staticmethod
    def _ensure_can_modify(review: dict[str, Any], user: CurrentUser | None) -> None:
        if user is not None and (user.is_admin or review["userId"] == user.id):
            return
        logger.warning(
            "review.modify_denied",
            extra={"review_id": review["id"], "user_id": user.id if user else None},
        )
        raise PermissionAppError(
            code="review_forbidden",
            message="You can only modify your own reviews",
        )

    def update_review(
        self,
        review_id: int,
        payload: ReviewUpdate,
        *,
        user: CurrentUser | None,
    ) -> dict[str, Any]:
        review = self.get_review(review_id)
        self._ensure_can_modify(review, user)

        columns: dict[str, Any] = {}
        if payload.rating is not None:
            columns["rating"] = _validate_rating(payload.rating)
        if payload.comment is not None:
            columns["comment"] = _validate_comment(payload.comment)
        if not columns:
            raise ValidationAppError(
                code="no_fields_to_update",
                message="No valid fields to update",
            )

        assignments = ", ".join(f"{column} = ?" for column in columns)
        with transaction(self.conn):
            self.conn.execute(
                f"UPDATE reviews SET {assignments}, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
                (*columns.values(), review_id),
            )

        logger.info("review.updated", extra={"review_id": review_id, "fields": sorted(columns)})
        return self.get_review(review_id)

    def delete_review(self, review_id: int, *, user: CurrentUser | None) -> None:
        review = self.get_review(review_id)
        self._ensure_can_modify(review, user)
        with transaction(self.conn):
            self.conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
        logger.info("review.deleted", extra={"review_id": review_id})
