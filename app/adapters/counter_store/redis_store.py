"""Redis-backed counter store with a connect-once provider.

Notes:
- The connection is attempted at most once per provider. Any failure while
  connecting (bad URL, refused connection, failed PING) is logged and
  remembered, and the provider keeps answering ``None`` afterwards.
- Per-call errors are not handled here: ``redis.RedisError`` propagates to the
  calling backend, which treats that single call as unavailable.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# Redis PTTL sentinel: key exists but has no expiry
_NO_EXPIRY = -1


class RedisCounterStore:
    """Counter primitives used by the rate limiter and lockout tracker."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @property
    def client(self) -> redis.Redis:
        return self._client

    async def increment(self, key: str) -> int:
        return int(await self._client.incr(key))

    async def set_expiry_if_unset(self, key: str, ttl_ms: int) -> bool:
        """Apply a millisecond expiry unless the key already carries one."""
        if await self._client.pttl(key) != _NO_EXPIRY:
            return False
        return bool(await self._client.pexpire(key, ttl_ms))

    async def time_to_live(self, key: str) -> int:
        """Remaining lifetime in ms; zero or negative means missing/expired."""
        return int(await self._client.pttl(key))

    async def set_with_expiry(self, key: str, value: str, ttl_ms: int) -> None:
        await self._client.set(key, value, px=ttl_ms)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)


class CounterStoreProvider:
    """Lazily connects to Redis once and memoizes the outcome.

    An empty or missing URL disables the distributed path entirely, leaving the
    local fallbacks as the primary state.
    """

    def __init__(
        self,
        redis_url: str | None,
        *,
        client_factory: Callable[[str], Any] = redis.from_url,
    ) -> None:
        self._redis_url = (redis_url or "").strip() or None
        self._client_factory = client_factory
        self._store: RedisCounterStore | None = None
        self._attempted = False
        self._connect_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._redis_url is not None

    @property
    def attempted(self) -> bool:
        return self._attempted

    async def get_store(self) -> RedisCounterStore | None:
        """Return the shared store, or ``None`` when Redis is disabled/unreachable."""
        if self._redis_url is None:
            return None
        if self._attempted:
            return self._store

        async with self._connect_lock:
            if not self._attempted:
                try:
                    self._store = await self._connect(self._redis_url)
                finally:
                    self._attempted = True
        return self._store

    async def _connect(self, redis_url: str) -> RedisCounterStore | None:
        client = None
        try:
            client = self._client_factory(redis_url)
            await client.ping()
        except Exception as exc:
            # Covers malformed URLs too: from_url raises ValueError for those.
            # TODO: allow a bounded reconnect once the store comes back; today the
            # first failure disables Redis until the process restarts.
            logger.warning(
                "counter_store.unavailable",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            if client is not None:
                await _close_quietly(client)
            return None

        logger.info("counter_store.connected")
        return RedisCounterStore(client)

    async def close(self) -> None:
        """Release the connection at process shutdown."""
        if self._store is not None:
            await _close_quietly(self._store.client)
            self._store = None


async def _close_quietly(client: Any) -> None:
    try:
        await client.aclose()
    except (RedisError, OSError) as exc:
        logger.debug(
            "counter_store.close_failed",
            extra={"error_type": type(exc).__name__},
        )
