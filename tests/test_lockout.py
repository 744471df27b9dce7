"""Tests for failed-login lockout backends and the tracker combining them."""

from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import TimeoutError as RedisTimeoutError

from app.adapters.counter_store import CounterStoreProvider
from app.adapters.lockout import InMemoryLockoutBackend, LockoutPolicy, RedisLockoutBackend
from app.adapters.lockout.redis_backend import failure_key, lock_key
from app.core.lockout import LockoutTracker, lockout_key

MINUTE = 60.0


def _tracker(clock, provider=None, **policy) -> LockoutTracker:
    policy = LockoutPolicy(**policy)
    provider = provider or CounterStoreProvider(None)
    return LockoutTracker(
        shared=RedisLockoutBackend(provider, policy),
        local=InMemoryLockoutBackend(policy, clock=clock),
    )


def test_lockout_key_lowercases_username_only() -> None:
    assert lockout_key("Bob", "10.0.0.5") == "bob::10.0.0.5"
    assert lockout_key("bob", "::1") == "bob::::1"


@pytest.mark.parametrize(
    "kwargs",
    [{"threshold": 0}, {"window_ms": 0}, {"duration_ms": 0}],
)
def test_policy_rejects_non_positive_values(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        LockoutPolicy(**kwargs)


class TestInMemoryLockout:
    @pytest.mark.asyncio
    async def test_locks_on_fifth_failure(self, clock) -> None:
        tracker = _tracker(clock)

        for _ in range(4):
            assert await tracker.record_failure("bob", "10.0.0.5") is False
            assert await tracker.is_locked("bob", "10.0.0.5") is False

        assert await tracker.record_failure("bob", "10.0.0.5") is True
        assert await tracker.is_locked("bob", "10.0.0.5") is True
        assert await tracker.is_locked("BOB", "10.0.0.5") is True

    @pytest.mark.asyncio
    async def test_lock_expires_after_duration(self, clock) -> None:
        tracker = _tracker(clock)
        for _ in range(5):
            await tracker.record_failure("bob", "10.0.0.5")

        clock.advance(14 * MINUTE)
        assert await tracker.is_locked("bob", "10.0.0.5") is True

        clock.advance(2 * MINUTE)
        assert await tracker.is_locked("bob", "10.0.0.5") is False
        assert tracker.local.get_entry("bob::10.0.0.5") is None

    @pytest.mark.asyncio
    async def test_pairs_are_independent(self, clock) -> None:
        tracker = _tracker(clock)
        for _ in range(5):
            await tracker.record_failure("bob", "10.0.0.5")

        assert await tracker.is_locked("bob", "10.0.0.6") is False
        assert await tracker.is_locked("alice", "10.0.0.5") is False

    @pytest.mark.asyncio
    async def test_failures_outside_window_start_new_count(self, clock) -> None:
        tracker = _tracker(clock)
        for _ in range(4):
            await tracker.record_failure("bob", "10.0.0.5")

        clock.advance(15 * MINUTE)
        assert await tracker.record_failure("bob", "10.0.0.5") is False
        assert tracker.local.get_entry("bob::10.0.0.5").failures == 1

    @pytest.mark.asyncio
    async def test_clear_resets_count(self, clock) -> None:
        tracker = _tracker(clock)
        for _ in range(4):
            await tracker.record_failure("bob", "10.0.0.5")

        await tracker.clear_failures("bob", "10.0.0.5")

        assert tracker.local.get_entry("bob::10.0.0.5") is None
        assert await tracker.record_failure("bob", "10.0.0.5") is False

    @pytest.mark.asyncio
    async def test_threshold_of_one_locks_first_failure(self, clock) -> None:
        tracker = _tracker(clock, threshold=1)

        assert await tracker.record_failure("bob", "10.0.0.5") is True
        assert await tracker.is_locked("bob", "10.0.0.5") is True


class TestRedisLockout:
    @pytest.mark.asyncio
    async def test_fifth_failure_writes_lock_and_drops_counter(
        self, clock, fake_redis_factory
    ) -> None:
        provider = CounterStoreProvider("redis://fake", client_factory=fake_redis_factory)
        tracker = _tracker(clock, provider)
        key = lockout_key("bob", "10.0.0.5")

        for _ in range(4):
            assert await tracker.record_failure("bob", "10.0.0.5") is False

        store = await provider.get_store()
        assert await store.client.get(failure_key(key)) == "4"
        assert 0 < await store.client.pttl(failure_key(key)) <= 900000

        assert await tracker.record_failure("bob", "10.0.0.5") is True
        assert await store.client.get(lock_key(key)) == "1"
        assert await store.client.exists(failure_key(key)) == 0
        assert await tracker.is_locked("bob", "10.0.0.5") is True
        # redis answered, so the local backend never saw these failures
        assert tracker.local.get_entry(key) is None
        await provider.close()

    @pytest.mark.asyncio
    async def test_lock_is_visible_to_other_instances(self, clock, fake_redis_factory) -> None:
        first = _tracker(
            clock, CounterStoreProvider("redis://fake", client_factory=fake_redis_factory)
        )
        second = _tracker(
            clock, CounterStoreProvider("redis://fake", client_factory=fake_redis_factory)
        )

        for _ in range(5):
            await first.record_failure("bob", "10.0.0.5")

        assert await second.is_locked("bob", "10.0.0.5") is True

    @pytest.mark.asyncio
    async def test_clear_keeps_existing_lock(self, clock, fake_redis_factory) -> None:
        tracker = _tracker(
            clock, CounterStoreProvider("redis://fake", client_factory=fake_redis_factory)
        )
        for _ in range(5):
            await tracker.record_failure("bob", "10.0.0.5")

        await tracker.clear_failures("bob", "10.0.0.5")

        assert await tracker.is_locked("bob", "10.0.0.5") is True

    @pytest.mark.asyncio
    async def test_store_errors_fall_back_to_local_state(self, clock) -> None:
        store = Mock()
        store.increment = AsyncMock(side_effect=RedisTimeoutError("slow"))
        store.time_to_live = AsyncMock(side_effect=RedisTimeoutError("slow"))
        store.delete = AsyncMock(side_effect=RedisTimeoutError("slow"))
        provider = Mock()
        provider.get_store = AsyncMock(return_value=store)
        tracker = _tracker(clock, provider)

        for _ in range(5):
            await tracker.record_failure("bob", "10.0.0.5")

        assert await tracker.is_locked("bob", "10.0.0.5") is True
        await tracker.clear_failures("bob", "10.0.0.5")
        assert await tracker.is_locked("bob", "10.0.0.5") is False
