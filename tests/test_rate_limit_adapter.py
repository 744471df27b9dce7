"""Unit tests for the rate limiting adapters."""

from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.adapters.counter_store import CounterStoreProvider
from app.adapters.rate_limit import (
    FallbackRateLimiter,
    InMemoryFixedWindowRateLimiter,
    RateLimitResult,
    RedisFixedWindowRateLimiter,
)


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=3, window_ms=60000, clock=clock)

    assert limiter.consume_sync("k").allowed is True
    assert limiter.consume_sync("k").allowed is True
    result = limiter.consume_sync("k")
    assert result.allowed is True
    assert result.remaining == 0


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=2, window_ms=60000, clock=clock)

    assert limiter.consume_sync("k").allowed is True
    assert limiter.consume_sync("k").allowed is True

    clock.return_value = 1012.5
    blocked = limiter.consume_sync("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    # 47.5 s left in the window, rounded up
    assert blocked.retry_after_seconds == 48


def test_retry_after_is_at_least_one_second() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60000, clock=clock)
    limiter.consume_sync("k")

    clock.return_value = 1059.9999
    assert limiter.consume_sync("k").retry_after_seconds == 1


def test_rejected_requests_do_not_extend_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=10000, clock=clock)

    assert limiter.consume_sync("k").allowed is True
    for offset in (1.0, 5.0, 9.0):
        clock.return_value = 1000.0 + offset
        assert limiter.consume_sync("k").allowed is False

    clock.return_value = 1010.0
    assert limiter.consume_sync("k").allowed is True


def test_window_starts_at_first_request() -> None:
    clock = Mock(return_value=1007.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=10000, clock=clock)

    assert limiter.consume_sync("k").allowed is True
    clock.return_value = 1016.9
    assert limiter.consume_sync("k").allowed is False
    clock.return_value = 1017.0
    assert limiter.consume_sync("k").allowed is True


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60000, clock=clock)

    assert limiter.consume_sync("k1").allowed is True
    assert limiter.consume_sync("k1").allowed is False

    assert limiter.consume_sync("k2").allowed is True
    assert len(limiter) == 2


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_ms": 60000},
        {"limit": 1, "window_ms": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60000)

    with pytest.raises(ValueError):
        limiter.consume_sync("")


class TestRedisFixedWindowRateLimiter:
    @pytest.mark.asyncio
    async def test_counts_in_redis_and_sets_window_expiry(self, fake_redis_factory) -> None:
        provider = CounterStoreProvider("redis://fake", client_factory=fake_redis_factory)
        limiter = RedisFixedWindowRateLimiter(provider, limit=2, window_ms=60000)

        first = await limiter.consume("10.0.0.1")
        second = await limiter.consume("10.0.0.1")
        third = await limiter.consume("10.0.0.1")

        assert (first.allowed, first.remaining) == (True, 1)
        assert (second.allowed, second.remaining) == (True, 0)
        assert third.allowed is False
        assert 1 <= third.retry_after_seconds <= 60

        store = await provider.get_store()
        assert await store.client.get("ratelimit:10.0.0.1") == "3"
        assert 0 < await store.client.pttl("ratelimit:10.0.0.1") <= 60000
        await provider.close()

    @pytest.mark.asyncio
    async def test_shared_between_limiters_on_same_store(self, fake_redis_factory) -> None:
        one = RedisFixedWindowRateLimiter(
            CounterStoreProvider("redis://fake", client_factory=fake_redis_factory),
            limit=2,
            window_ms=60000,
        )
        two = RedisFixedWindowRateLimiter(
            CounterStoreProvider("redis://fake", client_factory=fake_redis_factory),
            limit=2,
            window_ms=60000,
        )

        assert (await one.consume("ip")).allowed is True
        assert (await two.consume("ip")).allowed is True
        assert (await one.consume("ip")).allowed is False

    @pytest.mark.asyncio
    async def test_returns_none_without_redis(self) -> None:
        limiter = RedisFixedWindowRateLimiter(CounterStoreProvider(None), limit=1, window_ms=1000)

        assert await limiter.consume("ip") is None

    @pytest.mark.asyncio
    async def test_returns_none_on_store_error(self) -> None:
        store = Mock()
        store.increment = AsyncMock(side_effect=RedisConnectionError("boom"))
        provider = Mock()
        provider.get_store = AsyncMock(return_value=store)
        limiter = RedisFixedWindowRateLimiter(provider, limit=1, window_ms=1000)

        assert await limiter.consume("ip") is None


class TestFallbackRateLimiter:
    @pytest.mark.asyncio
    async def test_uses_primary_answer_when_available(self) -> None:
        primary = Mock()
        primary.consume = AsyncMock(
            return_value=RateLimitResult(allowed=False, limit=1, remaining=0, retry_after_seconds=7)
        )
        fallback = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60000)
        limiter = FallbackRateLimiter(primary, fallback)

        result = await limiter.consume("ip")

        assert result.retry_after_seconds == 7
        assert len(fallback) == 0

    @pytest.mark.asyncio
    async def test_falls_back_per_call(self) -> None:
        clock = Mock(return_value=1000.0)
        primary = Mock()
        primary.consume = AsyncMock(
            side_effect=[
                None,
                RateLimitResult(allowed=True, limit=1, remaining=0, retry_after_seconds=None),
                None,
            ]
        )
        fallback = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60000, clock=clock)
        limiter = FallbackRateLimiter(primary, fallback)

        assert (await limiter.consume("ip")).allowed is True
        assert (await limiter.consume("ip")).allowed is True
        # second local hit in the same window
        assert (await limiter.consume("ip")).allowed is False
