"""OpenLibrary search, author info and ISBN metadata mapping.

Shapes raw OpenLibrary documents into the API's response models. The
client underneath enforces the outbound budget and caches responses.
"""

from __future__ import annotations

import logging
from typing import Any

from app.adapters.openlibrary.base import AbstractOpenLibraryClient
from app.core.config import settings
from app.core.errors import NotFoundAppError, ValidationAppError
from app.schemas.book import AuthorRef, BookCreate
from app.schemas.openlibrary import (
    OpenLibraryAuthorInfo,
    OpenLibraryAuthorInfoResult,
    OpenLibraryAuthorResult,
    OpenLibraryAuthorWork,
    OpenLibraryIsbnBook,
    OpenLibraryIsbnResult,
    OpenLibraryTitleBook,
    OpenLibraryTitleResult,
    OpenLibraryWorkSummary,
)
from app.utils.text_normalizer import (
    extract_description,
    normalize_isbn,
    normalize_text,
    parse_publish_year,
)

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("isbn", "author", "title")
UNKNOWN_AUTHOR = "Unknown Author"
UNKNOWN_TITLE = "Unknown Title"
AUTHOR_INFO_WORKS = 10


def _first(values: Any) -> Any:
    if isinstance(values, list) and values:
        return values[0]
    return None


def _cover_id(value: Any) -> int | None:
    # OpenLibrary uses -1 for "no cover"
    if isinstance(value, int) and value > 0:
        return value
    return None


def _names(items: Any) -> list[str]:
    if not isinstance(items, list):
        return []
    names = []
    for item in items:
        name = item.get("name") if isinstance(item, dict) else item
        if isinstance(name, str) and name.strip():
            names.append(name.strip())
    return names


def _record_description(record: dict[str, Any]) -> str | None:
    description = extract_description(record.get("description")) or extract_description(record.get("notes"))
    if description:
        return description
    excerpt = _first(record.get("excerpts"))
    if isinstance(excerpt, dict):
        return extract_description(excerpt.get("text"))
    return None


def _work_year(entry: dict[str, Any]) -> int | None:
    return parse_publish_year(entry.get("first_publish_year")) or parse_publish_year(
        entry.get("first_publish_date")
    )


class OpenLibraryService:
    """Query OpenLibrary and map its documents to response models."""

    def __init__(self, client: AbstractOpenLibraryClient) -> None:
        self.client = client

    @staticmethod
    def _require_query(query: str | None, field: str) -> str:
        cleaned = normalize_text(query)
        if not cleaned:
            raise ValidationAppError(
                code="query_required",
                message="Search query is required",
                details={"field": field},
            )
        return cleaned

    async def search(
        self,
        query: str | None,
        search_type: str | None = None,
        *,
        limit: int | None = None,
    ) -> OpenLibraryIsbnResult | OpenLibraryAuthorResult | OpenLibraryTitleResult:
        """Dispatch a search by type (isbn, author, or title by default)."""

        cleaned = self._require_query(query, "query")
        kind = (search_type or "title").strip().lower()
        size = limit or settings.openlibrary.search_limit

        logger.info("openlibrary.search", extra={"search_type": kind, "limit": size})
        if kind == "isbn":
            return await self.search_by_isbn(cleaned)
        if kind == "author":
            return await self.search_by_author(cleaned, limit=size)
        return await self.search_by_title(cleaned, limit=size)

    async def search_by_isbn(self, isbn: str) -> OpenLibraryIsbnResult:
        cleaned = normalize_isbn(isbn) or isbn
        record = await self.client.get_book_by_isbn(cleaned)
        if record is None:
            raise NotFoundAppError(
                code="openlibrary_no_results",
                message="No book found with this ISBN",
                details={"resource": "isbn", "resource_id": cleaned},
            )

        cover = record.get("cover") if isinstance(record.get("cover"), dict) else {}
        publisher = _first(_names(record.get("publishers")))
        return OpenLibraryIsbnResult(
            book=OpenLibraryIsbnBook(
                title=record.get("title") or UNKNOWN_TITLE,
                author=", ".join(_names(record.get("authors"))) or UNKNOWN_AUTHOR,
                publish_year=parse_publish_year(record.get("publish_date")),
                isbn=cleaned,
                cover=cover.get("medium"),
                description=_record_description(record),
                publisher=publisher,
                subjects=_names(record.get("subjects")),
                url=record.get("url") or self.client.page_url(f"/isbn/{cleaned}"),
            )
        )

    async def _first_author(self, name: str) -> dict[str, Any]:
        payload = await self.client.search_authors(name)
        docs = [doc for doc in payload.get("docs") or [] if isinstance(doc, dict) and doc.get("key")]
        if not docs:
            raise NotFoundAppError(
                code="openlibrary_author_not_found",
                message="No author found with this name",
                details={"resource": "author", "resource_id": name},
            )
        return docs[0]

    async def search_by_author(self, name: str, *, limit: int) -> OpenLibraryAuthorResult:
        author = await self._first_author(name)
        author_name = author.get("name") or name
        works = await self.client.get_author_works(author["key"], limit=limit)
        entries = [entry for entry in works.get("entries") or [] if isinstance(entry, dict)]
        if not entries:
            raise NotFoundAppError(
                code="openlibrary_no_results",
                message="No books found for this author",
                details={"resource": "author", "resource_id": author["key"]},
            )

        books = []
        for entry in entries[:limit]:
            cover_id = _cover_id(_first(entry.get("covers")))
            books.append(
                OpenLibraryAuthorWork(
                    title=entry.get("title") or UNKNOWN_TITLE,
                    author=author_name,
                    work_key=entry.get("key"),
                    cover_id=cover_id,
                    cover=self.client.book_cover_url(cover_id),
                    first_publish_year=_work_year(entry),
                    url=self.client.page_url(entry.get("key")),
                    description=extract_description(entry.get("description")),
                )
            )
        return OpenLibraryAuthorResult(
            author=author_name,
            books=books,
            total=works.get("size") or len(entries),
        )

    async def search_by_title(self, title: str, *, limit: int) -> OpenLibraryTitleResult:
        payload = await self.client.search_books_by_title(title, limit=limit)
        docs = [doc for doc in payload.get("docs") or [] if isinstance(doc, dict)]
        if not docs:
            raise NotFoundAppError(
                code="openlibrary_no_results",
                message="No books found with this title",
                details={"resource": "title", "resource_id": title},
            )

        books = []
        for doc in docs[:limit]:
            cover_id = _cover_id(doc.get("cover_i"))
            books.append(
                OpenLibraryTitleBook(
                    title=doc.get("title") or UNKNOWN_TITLE,
                    author=", ".join(_names(doc.get("author_name"))) or UNKNOWN_AUTHOR,
                    first_publish_year=doc.get("first_publish_year"),
                    isbn=_first(doc.get("isbn")),
                    cover_id=cover_id,
                    cover=self.client.book_cover_url(cover_id),
                    key=doc.get("key"),
                    url=self.client.page_url(doc.get("key")),
                    languages=_names(doc.get("language")),
                    publishers=_names(doc.get("publisher"))[:5],
                )
            )
        return OpenLibraryTitleResult(
            books=books,
            total=payload.get("numFound", len(docs)),
            offset=payload.get("start", 0),
            limit=limit,
        )

    async def author_info(self, name: str | None) -> OpenLibraryAuthorInfoResult:
        """Top author match with up to ten of their works."""

        cleaned = self._require_query(name, "name")
        author = await self._first_author(cleaned)
        key = author["key"].rsplit("/", 1)[-1]
        works = await self.client.get_author_works(key, limit=AUTHOR_INFO_WORKS)

        summaries = []
        for entry in (works.get("entries") or [])[:AUTHOR_INFO_WORKS]:
            if not isinstance(entry, dict):
                continue
            cover_id = _cover_id(_first(entry.get("covers")))
            summaries.append(
                OpenLibraryWorkSummary(
                    title=entry.get("title") or UNKNOWN_TITLE,
                    key=entry.get("key"),
                    first_publish_year=_work_year(entry),
                    cover_id=cover_id,
                    cover=self.client.book_cover_url(cover_id),
                )
            )

        return OpenLibraryAuthorInfoResult(
            author=OpenLibraryAuthorInfo(
                name=author.get("name") or cleaned,
                key=key,
                birth_date=author.get("birth_date"),
                top_work=author.get("top_work"),
                work_count=author.get("work_count") or 0,
                photo_url=self.client.author_photo_url(key),
            ),
            works=summaries,
        )

    async def book_draft_for_isbn(self, isbn: str) -> BookCreate | None:
        """Map an ISBN record to a book write, or None when OpenLibrary has no record."""

        record = await self.client.get_book_by_isbn(isbn)
        if record is None:
            return None

        cover = record.get("cover") if isinstance(record.get("cover"), dict) else {}
        author_names = _names(record.get("authors")) or [UNKNOWN_AUTHOR]
        return BookCreate(
            title=record.get("title") or UNKNOWN_TITLE,
            isbn=isbn,
            publish_year=parse_publish_year(record.get("publish_date")),
            authors=[AuthorRef(name=name) for name in author_names],
            cover=cover.get("medium"),
            description=_record_description(record),
        )
