"""Book catalogue service: CRUD, search, author linking and ISBN import.

Every write that touches more than one table (book row + author links +
collection entry) runs inside a single transaction.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from fastapi.concurrency import run_in_threadpool

from app.core.errors import NotFoundAppError, ValidationAppError
from app.db.database import transaction
from app.schemas.book import AuthorRef, BookCreate, BookWrite
from app.utils.text_normalizer import normalize_isbn, normalize_text, split_author_names

if TYPE_CHECKING:
    from app.services.openlibrary_service import OpenLibraryService

logger = logging.getLogger(__name__)


@dataclass
class BookWriteResult:
    """Outcome of a create/import: the book and whether a row was inserted."""

    book: dict[str, Any]
    created: bool
    message: str


def attach_authors(conn: sqlite3.Connection, books: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Add an ``authors`` list (primary first, then by name) to each book."""

    if not books:
        return books

    ids = [book["id"] for book in books]
    placeholders = ",".join("?" for _ in ids)
    rows = conn.execute(
        f"""
        SELECT ab.book_id, a.id, a.name, ab.is_primary
        FROM author_books ab
        JOIN authors a ON a.id = ab.author_id
        WHERE ab.book_id IN ({placeholders})
        ORDER BY ab.is_primary DESC, a.name COLLATE NOCASE
        """,
        ids,
    ).fetchall()

    by_book: dict[int, list[dict[str, Any]]] = {book_id: [] for book_id in ids}
    for row in rows:
        by_book[row["book_id"]].append(
            {"id": row["id"], "name": row["name"], "is_primary": bool(row["is_primary"])}
        )

    for book in books:
        book["authors"] = by_book.get(book["id"], [])
    return books


def fetch_books(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> list[dict[str, Any]]:
    """Run a books query and return rows with their authors attached."""

    books = [dict(row) for row in conn.execute(sql, tuple(params)).fetchall()]
    return attach_authors(conn, books)


def find_or_create_author(conn: sqlite3.Connection, name: str) -> int:
    """Case-insensitive author lookup; creates the author when missing."""

    row = conn.execute(
        "SELECT id FROM authors WHERE LOWER(name) = LOWER(?) ORDER BY id LIMIT 1",
        (name,),
    ).fetchone()
    if row:
        return row["id"]
    return conn.execute("INSERT INTO authors (name) VALUES (?)", (name,)).lastrowid


def add_to_collection(conn: sqlite3.Connection, user_id: int, book_id: int) -> bool:
    """Insert a collection entry; returns False when it already existed."""

    cursor = conn.execute(
        "INSERT OR IGNORE INTO user_collections (userId, bookId) VALUES (?, ?)",
        (user_id, book_id),
    )
    return cursor.rowcount > 0


class BookService:
    """Book operations bound to one request-scoped connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    # Queries

    def list_books(self) -> list[dict[str, Any]]:
        return fetch_books(self.conn, "SELECT * FROM books ORDER BY title COLLATE NOCASE")

    def find_book(self, book_id: int) -> dict[str, Any] | None:
        books = fetch_books(self.conn, "SELECT * FROM books WHERE id = ?", (book_id,))
        return books[0] if books else None

    def get_book(self, book_id: int) -> dict[str, Any]:
        book = self.find_book(book_id)
        if book is None:
            raise NotFoundAppError(
                code="book_not_found",
                message="Book not found",
                details={"resource": "book", "resource_id": book_id},
            )
        return book

    def find_by_isbn(self, isbn: str) -> dict[str, Any] | None:
        books = fetch_books(self.conn, "SELECT * FROM books WHERE isbn = ?", (isbn,))
        return books[0] if books else None

    def search_books(self, query: str | None) -> list[dict[str, Any]]:
        """Match title, description, legacy author string or linked author names."""

        term = normalize_text(query)
        if not term:
            raise ValidationAppError(
                code="query_required",
                message="Search query is required",
                details={"field": "q"},
            )
        pattern = f"%{term}%"
        return fetch_books(
            self.conn,
            """
            SELECT DISTINCT b.*
            FROM books b
            LEFT JOIN author_books ab ON ab.book_id = b.id
            LEFT JOIN authors a ON a.id = ab.author_id
            WHERE b.title LIKE ? OR b.description LIKE ? OR b.author LIKE ? OR a.name LIKE ?
            ORDER BY b.title COLLATE NOCASE
            """,
            (pattern, pattern, pattern, pattern),
        )

    # Writes

    @staticmethod
    def _require_title(title: str | None) -> str:
        cleaned = normalize_text(title)
        if not cleaned:
            raise ValidationAppError(
                code="title_required",
                message="Title is required",
                details={"field": "title"},
            )
        return cleaned

    @staticmethod
    def _author_refs(payload: BookWrite) -> list[AuthorRef] | None:
        """Authors requested by a write, or None when the payload names none.

        The ``authors`` list wins over the comma-separated ``author`` string.
        """

        if payload.authors:
            return [
                AuthorRef(id=ref.id, name=normalize_text(ref.name) or None)
                for ref in payload.authors
                if ref.id is not None or normalize_text(ref.name)
            ]
        if payload.author is not None:
            return [AuthorRef(name=name) for name in split_author_names(payload.author)]
        if payload.authors is not None:
            return []
        return None

    def _link_authors(self, book_id: int, refs: list[AuthorRef]) -> list[str]:
        """Link authors to a book (first is primary); returns their names in order."""

        names: list[str] = []
        linked: set[int] = set()
        for ref in refs:
            if ref.id is not None:
                row = self.conn.execute("SELECT id, name FROM authors WHERE id = ?", (ref.id,)).fetchone()
                if row is None:
                    raise NotFoundAppError(
                        code="author_not_found",
                        message="Author not found",
                        details={"resource": "author", "resource_id": ref.id},
                    )
                author_id, name = row["id"], row["name"]
            else:
                name = ref.name or ""
                author_id = find_or_create_author(self.conn, name)

            if author_id in linked:
                continue
            self.conn.execute(
                "INSERT INTO author_books (author_id, book_id, is_primary) VALUES (?, ?, ?)",
                (author_id, book_id, 1 if not linked else 0),
            )
            linked.add(author_id)
            names.append(name)
        return names

    def create_book(self, payload: BookCreate, *, user_id: int | None = None) -> BookWriteResult:
        """Create a book, or return the existing one when the ISBN is known."""

        title = self._require_title(payload.title)
        isbn = normalize_isbn(payload.isbn)

        if isbn:
            existing = self.find_by_isbn(isbn)
            if existing is not None:
                if user_id is not None and payload.add_to_collection:
                    add_to_collection(self.conn, user_id, existing["id"])
                logger.info("book.create_existing_isbn", extra={"book_id": existing["id"]})
                return BookWriteResult(
                    book=existing,
                    created=False,
                    message="Book with this ISBN already exists",
                )

        refs = self._author_refs(payload) or []
        with transaction(self.conn):
            book_id = self.conn.execute(
                """
                INSERT INTO books (title, isbn, publishYear, author, cover, description)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    title,
                    isbn,
                    payload.publish_year,
                    normalize_text(payload.author) or None,
                    payload.cover,
                    payload.description,
                ),
            ).lastrowid
            names = self._link_authors(book_id, refs)
            if names:
                self.conn.execute(
                    "UPDATE books SET author = ? WHERE id = ?",
                    (", ".join(names), book_id),
                )
            if user_id is not None and payload.add_to_collection:
                add_to_collection(self.conn, user_id, book_id)

        logger.info(
            "book.created",
            extra={"book_id": book_id, "author_count": len(names), "has_isbn": bool(isbn)},
        )
        return BookWriteResult(
            book=self.get_book(book_id),
            created=True,
            message="Book created successfully",
        )

    def update_book(self, book_id: int, payload: BookWrite) -> dict[str, Any]:
        """Update the fields present in ``payload``; replaces author links when given."""

        self.get_book(book_id)
        title = self._require_title(payload.title)
        provided = payload.model_fields_set

        columns: dict[str, Any] = {"title": title}
        if "isbn" in provided:
            isbn = normalize_isbn(payload.isbn)
            if isbn:
                clash = self.conn.execute(
                    "SELECT id FROM books WHERE isbn = ? AND id != ?", (isbn, book_id)
                ).fetchone()
                if clash:
                    raise ValidationAppError(
                        code="isbn_exists",
                        message="Another book with this ISBN already exists",
                        details={"field": "isbn", "resource_id": clash["id"]},
                    )
            columns["isbn"] = isbn
        if "publish_year" in provided:
            columns["publishYear"] = payload.publish_year
        if "cover" in provided:
            columns["cover"] = payload.cover
        if "description" in provided:
            columns["description"] = payload.description

        refs = self._author_refs(payload)
        with transaction(self.conn):
            if refs is not None:
                self.conn.execute("DELETE FROM author_books WHERE book_id = ?", (book_id,))
                names = self._link_authors(book_id, refs)
                columns["author"] = ", ".join(names) or None

            assignments = ", ".join(f"{column} = ?" for column in columns)
            self.conn.execute(
                f"UPDATE books SET {assignments}, updatedAt = CURRENT_TIMESTAMP WHERE id = ?",
                (*columns.values(), book_id),
            )

        logger.info(
            "book.updated",
            extra={"book_id": book_id, "fields": sorted(columns), "authors_replaced": refs is not None},
        )
        return self.get_book(book_id)

    def delete_book(self, book_id: int) -> None:
        self.get_book(book_id)
        # author links, collection entries and reviews cascade
        self.conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        logger.info("book.deleted", extra={"book_id": book_id})

    async def import_by_isbn(
        self,
        isbn: str | None,
        *,
        openlibrary: "OpenLibraryService",
        user_id: int | None,
        add_to_collection_requested: bool = False,
    ) -> BookWriteResult:
        """Create a book from OpenLibrary metadata.

        Steps:
        1. Reject empty ISBNs.
        2. Known ISBN: add to the collection when requested, else 400.
        3. Fetch OpenLibrary metadata (404 when unknown).
        4. Insert book and author links in one transaction.
        """

        # Step 1: validate input
        cleaned = normalize_isbn(isbn)
        if not cleaned:
            raise ValidationAppError(
                code="isbn_required",
                message="ISBN is required",
                details={"field": "isbn"},
            )

        # Step 2: short-circuit on known ISBNs (no OpenLibrary call)
        existing = await run_in_threadpool(self.find_by_isbn, cleaned)
        if existing is not None:
            if add_to_collection_requested and user_id is not None:
                await run_in_threadpool(add_to_collection, self.conn, user_id, existing["id"])
                return BookWriteResult(
                    book=existing,
                    created=False,
                    message="Book already exists and was added to your collection",
                )
            raise ValidationAppError(
                code="isbn_exists",
                message="Book with this ISBN already exists",
                details={"field": "isbn", "resource_id": existing["id"]},
            )

        # Step 3: fetch metadata
        draft = await openlibrary.book_draft_for_isbn(cleaned)
        if draft is None:
            raise NotFoundAppError(
                code="isbn_not_found",
                message="Book not found in OpenLibrary",
                details={"resource": "isbn", "resource_id": cleaned},
            )

        # Step 4: persist
        draft.add_to_collection = add_to_collection_requested
        result = await run_in_threadpool(self.create_book, draft, user_id=user_id)
        logger.info("book.imported", extra={"book_id": result.book["id"], "source": "openlibrary"})
        return BookWriteResult(
            book=result.book,
            created=result.created,
            message="Book imported successfully" if result.created else result.message,
        )
