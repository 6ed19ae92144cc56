"""Per-user book collections."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.core.errors import NotFoundAppError, ValidationAppError
from app.services.book_service import add_to_collection, fetch_books

logger = logging.getLogger(__name__)


class CollectionService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def list_books(self, user_id: int) -> list[dict[str, Any]]:
        return fetch_books(
            self.conn,
            """
            SELECT b.*
            FROM books b
            JOIN user_collections uc ON uc.bookId = b.id
            WHERE uc.userId = ?
            ORDER BY b.title COLLATE NOCASE
            """,
            (user_id,),
        )

    def add_book(self, user_id: int, book_id: int | None) -> bool:
        """Add a book; adding one that is already collected is a no-op.

        Returns:
            bool: True when a new entry was created.
        """
        if book_id is None:
            raise ValidationAppError(
                code="book_id_required",
                message="Book ID is required",
                details={"field": "bookId"},
            )
        exists = self.conn.execute("SELECT 1 FROM books WHERE id = ?", (book_id,)).fetchone()
        if not exists:
            raise NotFoundAppError(
                code="book_not_found",
                message="Book not found",
                details={"resource": "book", "resource_id": book_id},
            )

        added = add_to_collection(self.conn, user_id, book_id)
        logger.info("collection.added", extra={"user_id": user_id, "book_id": book_id, "new_entry": added})
        return added

    def remove_book(self, user_id: int, book_id: int) -> None:
        cursor = self.conn.execute(
            "DELETE FROM user_collections WHERE userId = ? AND bookId = ?",
            (user_id, book_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundAppError(
                code="collection_entry_not_found",
                message="Book not found in your collection",
                details={"resource": "collection", "resource_id": book_id},
            )
        logger.info("collection.removed", extra={"user_id": user_id, "book_id": book_id})
