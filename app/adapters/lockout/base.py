"""Lockout backend interface.

Keys passed to backends are already derived (``lower(username)::address``);
each backend adds its own storage namespace.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class LockoutPolicy:
    """Failure threshold and timings, all in milliseconds."""

    threshold: int = 5
    window_ms: int = 900000
    duration_ms: int = 900000

    def __post_init__(self) -> None:
        if self.threshold < 1:
            raise ValueError("threshold must be >= 1")
        if self.window_ms < 1 or self.duration_ms < 1:
            raise ValueError("window_ms and duration_ms must be >= 1")


class AbstractLockoutBackend(ABC):
    """Storage for failed-login counters and lock flags.

    A backend that cannot answer (unreachable store, I/O error) reports
    ``False`` so callers consult the next backend.
    """

    @abstractmethod
    async def is_locked(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def record_failure(self, key: str) -> bool:
        """Count one failure; True only when this failure locked the key."""
        raise NotImplementedError

    @abstractmethod
    async def clear(self, key: str) -> None:
        raise NotImplementedError
