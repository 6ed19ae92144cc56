"""SQLite access: schema bootstrap, legacy migrations and connections.

The API talks to SQLite with raw SQL. Every request gets its own connection
(``get_connection`` dependency); multi-statement writes are wrapped in
``transaction()`` so they either fully apply or roll back.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterator

from fastapi import Depends

from app.core.config import settings
from app.utils.text_normalizer import split_author_names

logger = logging.getLogger(__name__)

# Same layout as SQLite's CURRENT_TIMESTAMP so string comparison is chronological
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
# Bumped when a one-off data migration is added; stored in PRAGMA user_version
SCHEMA_VERSION = 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL,
    email_verified INTEGER NOT NULL DEFAULT 0,
    verification_token TEXT,
    verification_token_expires TEXT,
    role TEXT NOT NULL DEFAULT 'USER',
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    updatedAt TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS books (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    isbn TEXT UNIQUE,
    publishYear INTEGER,
    author TEXT,
    cover TEXT,
    description TEXT,
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    updatedAt TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS authors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    biography TEXT,
    birth_date TEXT,
    photo_url TEXT,
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    updatedAt TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS author_books (
    author_id INTEGER NOT NULL,
    book_id INTEGER NOT NULL,
    is_primary INTEGER NOT NULL DEFAULT 0,
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (author_id, book_id),
    FOREIGN KEY (author_id) REFERENCES authors (id) ON DELETE CASCADE,
    FOREIGN KEY (book_id) REFERENCES books (id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS user_collections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    userId INTEGER NOT NULL,
    bookId INTEGER NOT NULL,
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    updatedAt TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (userId, bookId),
    FOREIGN KEY (userId) REFERENCES users (id) ON DELETE CASCADE,
    FOREIGN KEY (bookId) REFERENCES books (id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS reset_tokens (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    userId INTEGER NOT NULL,
    token TEXT NOT NULL,
    expiresAt TEXT NOT NULL,
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (userId) REFERENCES users (id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    bookId INTEGER NOT NULL,
    userId INTEGER,
    username TEXT NOT NULL,
    rating INTEGER NOT NULL CHECK (rating >= 1 AND rating <= 5),
    comment TEXT NOT NULL,
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    updatedAt TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (bookId) REFERENCES books (id) ON DELETE CASCADE,
    FOREIGN KEY (userId) REFERENCES users (id) ON DELETE SET NULL
);

CREATE INDEX IF NOT EXISTS idx_author_books_author_id ON author_books (author_id);
CREATE INDEX IF NOT EXISTS idx_author_books_book_id ON author_books (book_id);
CREATE INDEX IF NOT EXISTS idx_reviews_book_id ON reviews (bookId);
CREATE INDEX IF NOT EXISTS idx_reviews_user_id ON reviews (userId);
"""


def utc_timestamp(offset_seconds: float = 0) -> str:
    """Current UTC time (optionally shifted) formatted like CURRENT_TIMESTAMP."""

    moment = datetime.now(timezone.utc) + timedelta(seconds=offset_seconds)
    return moment.strftime(TIMESTAMP_FORMAT)


def row_to_dict(row: sqlite3.Row | None) -> dict[str, Any] | None:
    return dict(row) if row is not None else None


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block of statements atomically.

    Issues BEGIN up front, COMMIT on success and ROLLBACK on any exception
    (the exception is re-raised).
    """

    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        logger.warning("db.transaction_rolled_back")
        raise
    else:
        conn.execute("COMMIT")


def _column_names(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}


def _add_role_column(conn: sqlite3.Connection) -> bool:
    if "role" in _column_names(conn, "users"):
        return False
    conn.execute("ALTER TABLE users ADD COLUMN role TEXT NOT NULL DEFAULT 'USER'")
    return True


def _migrate_legacy_authors(conn: sqlite3.Connection) -> int:
    """Turn comma-separated ``books.author`` strings into author links.

    Only books without any author link are considered, so later edits to a
    book's authors survive a restart. Authors are matched by exact name or
    created; the first name becomes the primary author.

    Returns:
        Number of links inserted.
    """

    linked = 0
    books = conn.execute(
        "SELECT id, author FROM books "
        "WHERE author IS NOT NULL AND TRIM(author) != '' "
        "AND NOT EXISTS (SELECT 1 FROM author_books ab WHERE ab.book_id = books.id)"
    ).fetchall()

    for book in books:
        for position, name in enumerate(split_author_names(book["author"])):
            existing = conn.execute(
                "SELECT id FROM authors WHERE name = ?", (name,)
            ).fetchone()
            if existing:
                author_id = existing["id"]
            else:
                author_id = conn.execute(
                    "INSERT INTO authors (name) VALUES (?)", (name,)
                ).lastrowid
            cursor = conn.execute(
                "INSERT OR IGNORE INTO author_books (author_id, book_id, is_primary) "
                "VALUES (?, ?, ?)",
                (author_id, book["id"], 1 if position == 0 else 0),
            )
            linked += cursor.rowcount

    return linked


def init_schema(conn: sqlite3.Connection) -> None:
    """Create tables/indexes and apply idempotent migrations."""

    conn.executescript(SCHEMA)
    version = conn.execute("PRAGMA user_version").fetchone()[0]
    with transaction(conn):
        role_added = _add_role_column(conn)
        linked = 0
        if version < SCHEMA_VERSION:
            linked = _migrate_legacy_authors(conn)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    logger.info(
        "db.schema_ready",
        extra={
            "schema_version": SCHEMA_VERSION,
            "role_column_added": role_added,
            "legacy_author_links": linked,
        },
    )


class Database:
    """Connection factory bound to a single SQLite file.

    The schema is created lazily on the first connection.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._initialized = False
        self._init_lock = threading.Lock()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"Database(path={str(self.path)!r})"

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.path),
            check_same_thread=False,
            isolation_level=None,
            timeout=10,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def initialize(self) -> None:
        with self._init_lock:
            if self._initialized:
                return
            if str(self.path) != ":memory:":
                self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._open()
            try:
                init_schema(conn)
            finally:
                conn.close()
            self._initialized = True

    def connect(self) -> sqlite3.Connection:
        """Open a new connection (autocommit mode, foreign keys enabled)."""

        if not self._initialized:
            self.initialize()
        return self._open()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()


@lru_cache(maxsize=1)
def get_database() -> Database:
    """Process-wide database bound to DB_PATH."""

    return Database(settings.database.resolved_path)


def get_connection(
    database: Annotated[Database, Depends(get_database)],
) -> Iterator[sqlite3.Connection]:
    """FastAPI dependency yielding one connection per request."""

    with database.connection() as conn:
        yield conn
