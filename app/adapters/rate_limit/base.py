"""Rate limiter interfaces.

The HTTP layer depends on this abstraction only. Backends that may be
unreachable (Redis) answer ``None`` for a call they cannot serve, which lets a
composite limiter fall back to the next backend for that call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        retry_after_seconds: Whole seconds to wait when blocked (>= 1), else None.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    async def consume(self, key: str) -> RateLimitResult | None:
        """Count one request for ``key`` and decide whether to admit it.

        Args:
            key: Caller identity (client address by default).

        Returns:
            RateLimitResult, or None if this backend cannot serve the call.
        """
        raise NotImplementedError
