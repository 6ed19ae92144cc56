"""Rate limiting adapters.

One limiter guards inbound API traffic per client IP; a second one budgets
outbound OpenLibrary calls. Both use the same fixed-window abstraction so a
shared store (e.g., Redis) can replace the in-memory one later.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
]
