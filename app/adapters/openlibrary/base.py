from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractOpenLibraryClient(ABC):
	"""Interface for OpenLibrary metadata lookups.

	Implementations return the raw JSON documents; shaping them into API
	responses is the service layer's job.
	"""

	site_url: str = "https://openlibrary.org"
	covers_url: str = "https://covers.openlibrary.org"

	@abstractmethod
	async def get_book_by_isbn(self, isbn: str) -> dict[str, Any] | None:
		"""Fetch the ``jscmd=data`` record for an ISBN, or None when unknown."""
		...

	@abstractmethod
	async def search_books_by_title(self, title: str, *, limit: int) -> dict[str, Any]:
		"""Run a ``search.json`` title query (keys: docs, numFound, start)."""
		...

	@abstractmethod
	async def search_authors(self, name: str) -> dict[str, Any]:
		"""Run a ``search/authors.json`` query (keys: docs, numFound)."""
		...

	@abstractmethod
	async def get_author_works(self, author_key: str, *, limit: int) -> dict[str, Any]:
		"""List works for an author key such as ``OL23919A`` (keys: entries, size)."""
		...

	def book_cover_url(self, cover_id: Any, size: str = "M") -> str | None:
		if cover_id in (None, "", -1):
			return None
		return f"{self.covers_url}/b/id/{cover_id}-{size}.jpg"

	def author_photo_url(self, author_key: str | None, size: str = "L") -> str | None:
		"""Photo by OpenLibrary author id (OLID), e.g. ``OL23919A``."""
		if not author_key:
			return None
		olid = author_key.rsplit("/", 1)[-1]
		return f"{self.covers_url}/a/olid/{olid}-{size}.jpg"

	def page_url(self, key: str | None) -> str | None:
		"""Absolute URL for a key like ``/works/OL45804W``."""
		if not key:
			return None
		return f"{self.site_url}{key if key.startswith('/') else '/' + key}"
