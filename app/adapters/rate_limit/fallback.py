"""Composite limiter that tries backends in order for every call."""

from __future__ import annotations

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


class FallbackRateLimiter(AbstractRateLimiter):
    """Shared backend first, local fixed window when it cannot answer.

    The choice is made per call, so a single Redis error only moves that one
    request onto local state.
    """

    def __init__(
        self,
        primary: AbstractRateLimiter,
        fallback: InMemoryFixedWindowRateLimiter,
    ) -> None:
        self.primary = primary
        self.fallback = fallback

    async def consume(self, key: str) -> RateLimitResult:
        result = await self.primary.consume(key)
        if result is not None:
            return result
        return self.fallback.consume_sync(key)
