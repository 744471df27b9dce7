"""Redis fixed-window rate limiter shared across gateway instances."""

from __future__ import annotations

import logging
import math

from redis.exceptions import RedisError

from app.adapters.counter_store import CounterStoreProvider
from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

KEY_PREFIX = "ratelimit:"


class RedisFixedWindowRateLimiter(AbstractRateLimiter):
    """Counts requests with INCR; the window expiry is set by the first request.

    Answers ``None`` when Redis is disabled, unreachable, or errors during this
    call so the caller can fall back to local state.
    """

    def __init__(self, provider: CounterStoreProvider, *, limit: int, window_ms: int) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self._provider = provider
        self._limit = limit
        self._window_ms = window_ms

    async def consume(self, key: str) -> RateLimitResult | None:
        store = await self._provider.get_store()
        if store is None:
            return None

        redis_key = f"{KEY_PREFIX}{key}"
        try:
            count = await store.increment(redis_key)
            if count == 1:
                await store.set_expiry_if_unset(redis_key, self._window_ms)

            if count <= self._limit:
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - count,
                    retry_after_seconds=None,
                )

            ttl_ms = await store.time_to_live(redis_key)
        except RedisError as exc:
            logger.warning(
                "rate_limit.store_error",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return None

        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            retry_after_seconds=max(1, math.ceil(ttl_ms / 1000)),
        )
