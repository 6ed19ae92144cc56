"""Factory for the process-wide OpenLibrary client."""

from functools import lru_cache

import httpx

from app.adapters.openlibrary.base import AbstractOpenLibraryClient
from app.adapters.openlibrary.http_client import OpenLibraryClient
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import settings
from app.utils.simple_cache import SimpleTTLCache


def create_openlibrary_client(
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AbstractOpenLibraryClient:
    """Build an OpenLibrary client from ``settings.openlibrary``.

    Args:
        transport: Optional httpx transport override (tests).

    Returns:
        AbstractOpenLibraryClient: Client with its own rate limiter and cache.
    """
    cfg = settings.openlibrary
    return OpenLibraryClient(
        base_url=cfg.base_url,
        covers_url=cfg.covers_url,
        user_agent=cfg.user_agent,
        timeout_seconds=cfg.timeout_seconds,
        rate_limiter=InMemoryFixedWindowRateLimiter(
            limit=cfg.rate_limit_requests,
            window_seconds=cfg.rate_limit_window_seconds,
        ),
        cache=SimpleTTLCache(
            ttl_seconds=cfg.cache_ttl_seconds,
            max_entries=cfg.cache_max_entries,
        ),
        transport=transport,
    )


@lru_cache(maxsize=1)
def get_openlibrary_client() -> AbstractOpenLibraryClient:
    """FastAPI dependency returning the shared client (one budget per process)."""
    return create_openlibrary_client()
