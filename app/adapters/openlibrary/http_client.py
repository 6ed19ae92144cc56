"""OpenLibrary adapter over httpx.

Every cache miss spends one unit of the outbound rate-limit budget
(OPENLIBRARY_RATE_LIMIT_REQUESTS per OPENLIBRARY_RATE_LIMIT_WINDOW_SECONDS);
successful responses are cached so repeated lookups are free.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import httpx

from app.adapters.openlibrary.base import AbstractOpenLibraryClient
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.errors import ExternalServiceAppError, RateLimitAppError
from app.utils.simple_cache import SimpleTTLCache, build_cache_key

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY = "openlibrary"


class OpenLibraryClient(AbstractOpenLibraryClient):
    """Async OpenLibrary client with an outbound budget and response cache."""

    def __init__(
        self,
        *,
        base_url: str,
        covers_url: str,
        user_agent: str,
        rate_limiter: AbstractRateLimiter,
        cache: SimpleTTLCache | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: OpenLibrary site URL (API paths are relative to it).
            covers_url: Covers service URL used to build image links.
            user_agent: User-Agent header (OpenLibrary asks clients to identify).
            rate_limiter: Budget shared by every outbound call.
            cache: Optional response cache.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.site_url = base_url.rstrip("/")
        self.covers_url = covers_url.rstrip("/")
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._timeout = httpx.Timeout(timeout_seconds)
        self._limiter = rate_limiter
        self._cache = cache
        self._transport = transport

    def _build_client(self) -> httpx.AsyncClient:
        # A client per call keeps us independent of whichever event loop runs the request
        return httpx.AsyncClient(
            base_url=self.site_url,
            headers=self._headers,
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    def _consume_budget(self, path: str) -> None:
        result = self._limiter.consume(RATE_LIMIT_KEY)
        if result.allowed:
            return

        retry_after = result.retry_after_seconds or 1
        logger.warning(
            "openlibrary.rate_limited",
            extra={"path": path, "retry_after_s": retry_after, "limit": result.limit},
        )
        raise RateLimitAppError(
            code="openlibrary_rate_limited",
            message="Too many requests to OpenLibrary. Please try again later.",
            details={"retry_after": retry_after},
        )

    async def _get_json(self, path: str, params: Mapping[str, Any] | None = None) -> Any | None:
        """GET a JSON document; None when OpenLibrary answers 404.

        Raises:
            RateLimitAppError: Local budget exhausted or upstream 429.
            ExternalServiceAppError: Network failure, 5xx or invalid JSON.
        """
        cache_key = build_cache_key(path, params)
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        self._consume_budget(path)

        start = time.perf_counter()
        try:
            async with self._build_client() as client:
                response = await client.get(path, params=dict(params or {}))
        except httpx.TimeoutException as exc:
            logger.warning("openlibrary.timeout", extra={"path": path})
            raise ExternalServiceAppError(
                code="openlibrary_timeout",
                message="OpenLibrary did not respond in time",
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "openlibrary.request_failed",
                extra={"path": path, "error_type": type(exc).__name__},
            )
            raise ExternalServiceAppError(
                code="openlibrary_unavailable",
                message="Failed to reach OpenLibrary",
            ) from exc

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "openlibrary.request",
            extra={
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        if response.status_code == 404:
            return None
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "60")
            raise RateLimitAppError(
                code="openlibrary_rate_limited",
                message="Too many requests to OpenLibrary. Please try again later.",
                details={"retry_after": int(retry_after) if retry_after.isdigit() else 60},
            )
        if response.status_code >= 400:
            raise ExternalServiceAppError(
                code="openlibrary_unavailable",
                message="OpenLibrary returned an error",
                details={"upstream_status": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExternalServiceAppError(
                code="openlibrary_invalid_response",
                message="OpenLibrary returned an invalid response",
            ) from exc

        if self._cache is not None:
            self._cache.set(cache_key, payload)
        return payload

    async def get_book_by_isbn(self, isbn: str) -> dict[str, Any] | None:
        bibkey = f"ISBN:{isbn}"
        payload = await self._get_json(
            "/api/books",
            {"bibkeys": bibkey, "format": "json", "jscmd": "data"},
        )
        if not isinstance(payload, dict):
            return None
        record = payload.get(bibkey)
        return record if isinstance(record, dict) and record else None

    async def search_books_by_title(self, title: str, *, limit: int) -> dict[str, Any]:
        payload = await self._get_json("/search.json", {"title": title, "limit": limit})
        return payload if isinstance(payload, dict) else {"docs": [], "numFound": 0, "start": 0}

    async def search_authors(self, name: str) -> dict[str, Any]:
        payload = await self._get_json("/search/authors.json", {"q": name})
        return payload if isinstance(payload, dict) else {"docs": [], "numFound": 0}

    async def get_author_works(self, author_key: str, *, limit: int) -> dict[str, Any]:
        key = author_key.rsplit("/", 1)[-1]
        payload = await self._get_json(f"/authors/{key}/works.json", {"limit": limit})
        return payload if isinstance(payload, dict) else {"entries": [], "size": 0}
