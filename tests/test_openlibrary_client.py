"""Tests for the httpx-based OpenLibrary client (budget, cache, error mapping)."""

import httpx
import pytest

from app.adapters.openlibrary.factory import create_openlibrary_client
from app.adapters.openlibrary.http_client import RATE_LIMIT_KEY, OpenLibraryClient
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.errors import ExternalServiceAppError, RateLimitAppError
from app.utils.simple_cache import SimpleTTLCache

ISBN = "9780140328721"


def _client(handler, *, limit: int = 5, cache: SimpleTTLCache | None = None) -> OpenLibraryClient:
    return OpenLibraryClient(
        base_url="https://openlibrary.org",
        covers_url="https://covers.openlibrary.org",
        user_agent="LibraryAPI-tests",
        rate_limiter=InMemoryFixedWindowRateLimiter(limit=limit, window_seconds=60, clock=lambda: 1000.0),
        cache=cache,
        transport=httpx.MockTransport(handler),
    )


def _isbn_handler(calls: list):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={f"ISBN:{ISBN}": {"title": "Fantastic Mr Fox"}})

    return handler


class TestRequests:
    """Request construction and response parsing."""

    @pytest.mark.asyncio
    async def test_isbn_lookup_uses_data_endpoint(self) -> None:
        calls: list[httpx.Request] = []
        client = _client(_isbn_handler(calls))

        record = await client.get_book_by_isbn(ISBN)

        assert record == {"title": "Fantastic Mr Fox"}
        request = calls[0]
        assert request.url.path == "/api/books"
        assert request.url.params["bibkeys"] == f"ISBN:{ISBN}"
        assert request.url.params["jscmd"] == "data"
        assert request.headers["User-Agent"] == "LibraryAPI-tests"

    @pytest.mark.asyncio
    async def test_isbn_lookup_without_record_is_none(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={}))

        assert await client.get_book_by_isbn(ISBN) is None

    @pytest.mark.asyncio
    async def test_not_found_is_none(self) -> None:
        client = _client(lambda request: httpx.Response(404, json={"error": "notfound"}))

        assert await client.search_authors("Nobody") == {"docs": [], "numFound": 0}

    @pytest.mark.asyncio
    async def test_author_works_accepts_full_key(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"entries": [], "size": 0})

        client = _client(handler)

        await client.get_author_works("/authors/OL34184A", limit=3)

        assert calls[0].url.path == "/authors/OL34184A/works.json"
        assert calls[0].url.params["limit"] == "3"

    def test_url_helpers(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={}))

        assert client.book_cover_url(12345) == "https://covers.openlibrary.org/b/id/12345-M.jpg"
        assert client.book_cover_url(None) is None
        assert client.author_photo_url("/authors/OL34184A") == "https://covers.openlibrary.org/a/olid/OL34184A-L.jpg"
        assert client.page_url("/works/OL45804W") == "https://openlibrary.org/works/OL45804W"
        assert client.page_url("works/OL45804W") == "https://openlibrary.org/works/OL45804W"


class TestBudget:
    """Outbound rate-limit budget."""

    @pytest.mark.asyncio
    async def test_budget_exhaustion_raises_without_calling_upstream(self) -> None:
        calls: list[httpx.Request] = []
        client = _client(_isbn_handler(calls), limit=2)

        await client.get_book_by_isbn("1")
        await client.get_book_by_isbn("2")
        with pytest.raises(RateLimitAppError) as exc_info:
            await client.get_book_by_isbn("3")

        assert exc_info.value.code == "openlibrary_rate_limited"
        assert exc_info.value.details["retry_after"] == 20
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_cache_hits_do_not_spend_budget(self) -> None:
        calls: list[httpx.Request] = []
        client = _client(_isbn_handler(calls), limit=1, cache=SimpleTTLCache(ttl_seconds=60))

        first = await client.get_book_by_isbn(ISBN)
        second = await client.get_book_by_isbn(ISBN)

        assert first == second
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_budget_is_shared_under_one_key(self) -> None:
        limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=60, clock=lambda: 1000.0)
        client = OpenLibraryClient(
            base_url="https://openlibrary.org",
            covers_url="https://covers.openlibrary.org",
            user_agent="LibraryAPI-tests",
            rate_limiter=limiter,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"docs": []})),
        )

        await client.search_books_by_title("fox", limit=5)
        await client.search_authors("dahl")

        assert limiter.consume(RATE_LIMIT_KEY).remaining == 2


class TestErrorMapping:
    """Upstream failures become AppErrors."""

    @pytest.mark.asyncio
    async def test_upstream_429(self) -> None:
        client = _client(lambda request: httpx.Response(429, headers={"Retry-After": "30"}, json={}))

        with pytest.raises(RateLimitAppError) as exc_info:
            await client.search_authors("dahl")

        assert exc_info.value.details["retry_after"] == 30

    @pytest.mark.asyncio
    async def test_upstream_server_error(self) -> None:
        client = _client(lambda request: httpx.Response(503, json={}))

        with pytest.raises(ExternalServiceAppError) as exc_info:
            await client.search_authors("dahl")

        assert exc_info.value.code == "openlibrary_unavailable"
        assert exc_info.value.details["upstream_status"] == 503

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b"<html>", headers={"Content-Type": "text/html"}))

        with pytest.raises(ExternalServiceAppError) as exc_info:
            await client.search_authors("dahl")

        assert exc_info.value.code == "openlibrary_invalid_response"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = _client(handler)

        with pytest.raises(ExternalServiceAppError) as exc_info:
            await client.search_authors("dahl")

        assert exc_info.value.code == "openlibrary_timeout"

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)

        with pytest.raises(ExternalServiceAppError) as exc_info:
            await client.search_authors("dahl")

        assert exc_info.value.code == "openlibrary_unavailable"

    @pytest.mark.asyncio
    async def test_errors_are_not_cached(self) -> None:
        responses = [httpx.Response(503, json={}), httpx.Response(200, json={"docs": [{"key": "OL1A"}]})]
        cache = SimpleTTLCache(ttl_seconds=60)
        client = _client(lambda request: responses.pop(0), cache=cache)

        with pytest.raises(ExternalServiceAppError):
            await client.search_authors("dahl")
        payload = await client.search_authors("dahl")

        assert payload["docs"][0]["key"] == "OL1A"


def test_factory_builds_client_from_settings() -> None:
    client = create_openlibrary_client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))

    assert isinstance(client, OpenLibraryClient)
    assert client.site_url == "https://openlibrary.org"
