"""Shared counter store adapters.

Rate limiting and lockout tracking coordinate across gateway instances through
a Redis counter store. The provider here hands out that store lazily and
reports "no store" instead of raising when Redis cannot be reached.
"""

from app.adapters.counter_store.redis_store import CounterStoreProvider, RedisCounterStore

__all__ = ["CounterStoreProvider", "RedisCounterStore"]
