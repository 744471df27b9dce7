"""Redis lockout backend shared across gateway instances.

Two keys per username/address pair:
- ``auth:fail:<key>``: failure counter, expiring one failure window after the
  first failure.
- ``auth:lock:<key>``: lock flag written when the counter reaches the
  threshold, expiring after the lockout duration. The counter is deleted at
  that moment so a fresh cycle starts once the lock lapses.
"""

from __future__ import annotations

import logging

from redis.exceptions import RedisError

from app.adapters.counter_store import CounterStoreProvider
from app.adapters.lockout.base import AbstractLockoutBackend, LockoutPolicy

logger = logging.getLogger(__name__)

FAILURE_KEY_PREFIX = "auth:fail:"
LOCK_KEY_PREFIX = "auth:lock:"


def failure_key(key: str) -> str:
    return f"{FAILURE_KEY_PREFIX}{key}"


def lock_key(key: str) -> str:
    return f"{LOCK_KEY_PREFIX}{key}"


class RedisLockoutBackend(AbstractLockoutBackend):
    def __init__(self, provider: CounterStoreProvider, policy: LockoutPolicy) -> None:
        self._provider = provider
        self._policy = policy

    def _log_store_error(self, operation: str, exc: RedisError) -> None:
        logger.warning(
            "lockout.store_error",
            extra={
                "operation": operation,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
            },
        )

    async def is_locked(self, key: str) -> bool:
        store = await self._provider.get_store()
        if store is None:
            return False
        try:
            return await store.time_to_live(lock_key(key)) > 0
        except RedisError as exc:
            self._log_store_error("is_locked", exc)
            return False

    async def record_failure(self, key: str) -> bool:
        store = await self._provider.get_store()
        if store is None:
            return False

        counter = failure_key(key)
        try:
            failures = await store.increment(counter)
            if failures == 1:
                await store.set_expiry_if_unset(counter, self._policy.window_ms)

            if failures < self._policy.threshold:
                return False

            await store.set_with_expiry(lock_key(key), "1", self._policy.duration_ms)
            await store.delete(counter)
        except RedisError as exc:
            self._log_store_error("record_failure", exc)
            return False
        return True

    async def clear(self, key: str) -> None:
        """Drop the failure counter; an existing lock stays in place."""
        store = await self._provider.get_store()
        if store is None:
            return
        try:
            await store.delete(failure_key(key))
        except RedisError as exc:
            self._log_store_error("clear", exc)
