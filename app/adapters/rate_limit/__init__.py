"""Rate limiting adapters.

A small abstraction layer so the HTTP layer can count requests in Redis when
it is reachable and in process memory when it is not, without knowing which.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.fallback import FallbackRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.adapters.rate_limit.redis_backend import RedisFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "FallbackRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
    "RedisFixedWindowRateLimiter",
]
