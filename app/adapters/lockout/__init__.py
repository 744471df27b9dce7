"""Account lockout storage backends (Redis and in-process)."""

from app.adapters.lockout.base import AbstractLockoutBackend, LockoutPolicy
from app.adapters.lockout.in_memory import InMemoryLockoutBackend, LockoutEntry
from app.adapters.lockout.redis_backend import RedisLockoutBackend

__all__ = [
    "AbstractLockoutBackend",
    "InMemoryLockoutBackend",
    "LockoutEntry",
    "LockoutPolicy",
    "RedisLockoutBackend",
]
