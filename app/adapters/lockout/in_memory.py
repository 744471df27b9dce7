"""In-process lockout state used when Redis is absent or does not lock.

Notes:
- Per-process only; horizontally scaled instances keep separate counts.
- Stale entries are evicted lazily on lookup. There is no background sweep,
  so keys that are never looked up again stay in memory.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.lockout.base import AbstractLockoutBackend, LockoutPolicy


@dataclass
class LockoutEntry:
    failures: int
    first_failure_at: float
    locked_until: float = 0.0


class InMemoryLockoutBackend(AbstractLockoutBackend):
    """Failure counts per key with a fixed failure window."""

    def __init__(
        self,
        policy: LockoutPolicy,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policy = policy
        self._window_seconds = policy.window_ms / 1000
        self._duration_seconds = policy.duration_ms / 1000
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, LockoutEntry] = {}

    def get_entry(self, key: str) -> LockoutEntry | None:
        with self._lock:
            return self._entries.get(key)

    def _window_elapsed(self, entry: LockoutEntry, now: float) -> bool:
        return entry.first_failure_at + self._window_seconds <= now

    async def is_locked(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.locked_until > now:
                return True
            if self._window_elapsed(entry, now) or entry.locked_until > 0:
                # stale window or expired lock
                del self._entries[key]
            return False

    async def record_failure(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._window_elapsed(entry, now):
                entry = LockoutEntry(failures=1, first_failure_at=now)
                self._entries[key] = entry
            else:
                entry.failures += 1

            if entry.failures >= self._policy.threshold:
                entry.locked_until = now + self._duration_seconds
            return entry.locked_until > now

    async def clear(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
