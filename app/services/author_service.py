"""Author catalogue service and author/book link management."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.core.errors import ConflictAppError, NotFoundAppError, ValidationAppError
from app.db.database import row_to_dict, transaction
from app.schemas.author import AuthorWrite
from app.services.book_service import fetch_books
from app.utils.text_normalizer import normalize_text

logger = logging.getLogger(__name__)

_AUTHOR_WITH_COUNT = """
    SELECT a.*, COUNT(ab.book_id) AS book_count
    FROM authors a
    LEFT JOIN author_books ab ON ab.author_id = a.id
"""


class AuthorService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def list_authors(self) -> list[dict[str, Any]]:
        rows = self.conn.execute(
            f"{_AUTHOR_WITH_COUNT} GROUP BY a.id ORDER BY a.name COLLATE NOCASE"
        ).fetchall()
        return [dict(row) for row in rows]

    def find_author(self, author_id: int) -> dict[str, Any] | None:
        return row_to_dict(
            self.conn.execute(
                f"{_AUTHOR_WITH_COUNT} WHERE a.id = ? GROUP BY a.id", (author_id,)
            ).fetchone()
        )

    def get_author(self, author_id: int) -> dict[str, Any]:
        author = self.find_author(author_id)
        if author is None:
            raise NotFoundAppError(
                code="author_not_found",
                message="Author not found",
                details={"resource": "author", "resource_id": author_id},
            )
        return author

    def _find_by_name(self, name: str, *, exclude_id: int | None = None) -> dict[str, Any] | None:
        sql = f"{_AUTHOR_WITH_COUNT} WHERE LOWER(a.name) = LOWER(?)"
        params: list[Any] = [name]
        if exclude_id is not None:
            sql += " AND a.id != ?"
            params.append(exclude_id)
        sql += " GROUP BY a.id ORDER BY a.id LIMIT 1"
        return row_to_dict(self.conn.execute(sql, params).fetchone())

    def books_for(self, author_id: int) -> list[dict[str, Any]]:
        return fetch_books(
            self.conn,
            """
            SELECT b.*
            FROM books b
            JOIN author_books ab ON ab.book_id = b.id
            WHERE ab.author_id = ?
            ORDER BY b.title COLLATE NOCASE
            """,
            (author_id,),
        )

    def get_author_with_books(self, author_id: int) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        author = self.get_author(author_id)
        return author, self.books_for(author_id)

    def get_author_by_name(self, name: str) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """Case-insensitive exact-name lookup."""

        author = self._find_by_name(normalize_text(name))
        if author is None:
            raise NotFoundAppError(
                code="author_not_found",
                message="Author not found",
                details={"resource": "author", "resource_id": name},
            )
        return author, self.books_for(author["id"])

    @staticmethod
    def _require_name(name: str | None) -> str:
        cleaned = normalize_text(name)
        if not cleaned:
            raise ValidationAppError(
                code="name_required",
                message="Author name is required",
                details={"field": "name"},
            )
        return cleaned

    def create_author(self, payload: AuthorWrite) -> dict[str, Any]:
        name = self._require_name(payload.name)
        existing = self._find_by_name(name)
        if existing is not None:
            raise ConflictAppError(
                code="author_exists",
                message="Author with this name already exists",
                details={"author": existing},
            )

        author_id = self.conn.execute(
            "INSERT INTO authors (name, biography, birth_date, photo_url) VALUES (?, ?, ?, ?)",
            (name, payload.biography, payload.birth_date, payload.photo_url),
        ).lastrowid
        logger.info("author.created", extra={"author_id": author_id})
        return self.get_author(author_id)

    def update_author(self, author_id: int, payload: AuthorWrite) -> dict[str, Any]:
        self.get_author(author_id)
        name = self._require_name(payload.name)
        clash = self._find_by_name(name, exclude_id=author_id)
        if clash is not None:
            raise ConflictAppError(
                code="author_exists",
                message="Another author with this name already exists",
                details={"author": clash},
            )

        columns: dict[str, Any] = {"name": name}
        for field in ("biography", "birth_date", "photo_url"):
            if field in payload.model_fields_set:
                columns[field] = getattr(payload, field)

        assignments = ", ".join(f"{column} = ?" for column in columns)
        self.conn.execute(
            f"UPDATE authors SET {assignments}, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
            (*columns.values(), author_id),
        )
        logger.info("author.updated", extra={"author_id": author_id, "fields": sorted(columns)})
        return self.get_author(author_id)

    def delete_author(self, author_id: int) -> None:
        self.get_author(author_id)
        self.conn.execute("DELETE FROM authors WHERE id = ?", (author_id,))
        logger.info("author.deleted", extra={"author_id": author_id})

    def link_book(
        self,
        author_id: int | None,
        book_id: int | None,
        *,
        is_primary: bool = False,
    ) -> tuple[dict[str, Any], bool]:
        """Link an author to a book, or update the primary flag of an existing link.

        A book keeps at most one primary author: promoting one demotes the rest.

        Returns:
            Tuple of (link, created).
        """

        if author_id is None or book_id is None:
            raise ValidationAppError(
                code="ids_required",
                message="Author ID and Book ID are required",
                details={"field": "authorId" if author_id is None else "bookId"},
            )
        self.get_author(author_id)
        if not self.conn.execute("SELECT 1 FROM books WHERE id = ?", (book_id,)).fetchone():
            raise NotFoundAppError(
                code="book_not_found",
                message="Book not found",
                details={"resource": "book", "resource_id": book_id},
            )

        with transaction(self.conn):
            if is_primary:
                self.conn.execute(
                    "UPDATE author_books SET is_primary = 0 WHERE book_id = ? AND author_id != ?",
                    (book_id, author_id),
                )
            existing = self.conn.execute(
                "SELECT 1 FROM author_books WHERE author_id = ? AND book_id = ?",
                (author_id, book_id),
            ).fetchone()
            if existing:
                self.conn.execute(
                    "UPDATE author_books SET is_primary = ? WHERE author_id = ? AND book_id = ?",
                    (int(is_primary), author_id, book_id),
                )
            else:
                self.conn.execute(
                    "INSERT INTO author_books (author_id, book_id, is_primary) VALUES (?, ?, ?)",
                    (author_id, book_id, int(is_primary)),
                )

        created = existing is None
        logger.info(
            "author.book_linked",
            extra={"author_id": author_id, "book_id": book_id, "is_primary": is_primary, "new_link": created},
        )
        return {"author_id": author_id, "book_id": book_id, "is_primary": is_primary}, created

    def unlink_book(self, author_id: int, book_id: int) -> None:
        cursor = self.conn.execute(
            "DELETE FROM author_books WHERE author_id = ? AND book_id = ?",
            (author_id, book_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundAppError(
                code="author_book_link_not_found",
                message="Author is not linked to this book",
                details={"resource": "author_book", "resource_id": f"{author_id}:{book_id}"},
            )
        logger.info("author.book_unlinked", extra={"author_id": author_id, "book_id": book_id})
