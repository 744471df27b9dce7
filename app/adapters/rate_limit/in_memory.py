"""In-memory fixed-window rate limiter (local fallback).

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state. The lock is never held across
  an ``await``.
- Windows start at a key's first request, not on wall-clock boundaries.
- Window records are never pruned; memory grows with distinct keys.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    A request that finds no record, or a record whose window has elapsed,
    starts a new window with count 1 and is always admitted. Within a window
    the first ``limit`` requests are admitted and later ones rejected.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_ms: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of requests per window.
            window_ms: Size of the fixed window in milliseconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_ms are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self._limit = limit
        self._window_seconds = window_ms / 1000
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _blocked(self, *, now: float, window_start: float) -> RateLimitResult:
        remaining_window = self._window_seconds - (now - window_start)
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            retry_after_seconds=max(1, math.ceil(remaining_window)),
        )

    def consume_sync(self, key: str) -> RateLimitResult:
        """Synchronous decision; never returns None.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            state = self._state_by_key.get(key)
            if state is None or now - state.window_start >= self._window_seconds:
                self._state_by_key[key] = _WindowState(window_start=now, count=1)
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - 1,
                    retry_after_seconds=None,
                )

            if state.count >= self._limit:
                return self._blocked(now=now, window_start=state.window_start)

            state.count += 1
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=self._limit - state.count,
                retry_after_seconds=None,
            )

    async def consume(self, key: str) -> RateLimitResult:
        return self.consume_sync(key)
