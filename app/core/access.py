"""Access-control state owned by one application instance.

Everything that carries mutable state across requests (the Redis provider, the
local rate-limit windows, the local lockout entries) lives in one container
built by the app factory and stored on ``app.state``. Nothing is kept in
module globals, so each app (and each test) starts from clean state.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

import redis.asyncio as redis
from fastapi import Request

from app.adapters.counter_store import CounterStoreProvider
from app.adapters.lockout import InMemoryLockoutBackend, LockoutPolicy, RedisLockoutBackend
from app.adapters.rate_limit import (
    FallbackRateLimiter,
    InMemoryFixedWindowRateLimiter,
    RedisFixedWindowRateLimiter,
)
from app.core.auth import TokenAuthenticator
from app.core.config import Settings, dev_tokens_allowed, resolve_jwt_secret
from app.core.lockout import LockoutTracker


@dataclass
class AccessControls:
    store_provider: CounterStoreProvider
    rate_limiter: FallbackRateLimiter
    lockout: LockoutTracker
    authenticator: TokenAuthenticator

    async def close(self) -> None:
        await self.store_provider.close()


def build_access_controls(
    cfg: Settings,
    *,
    clock: Callable[[], float] = time.time,
    redis_client_factory: Callable[[str], Any] = redis.from_url,
) -> AccessControls:
    """Assemble the access-control chain from settings.

    Args:
        cfg: Resolved settings.
        clock: Time source (UNIX seconds) for local state and token issuance.
        redis_client_factory: Builds a Redis client from a URL.

    Raises:
        ConfigurationAppError: If the signing secret is unacceptable in
            production.
    """
    secret = resolve_jwt_secret(cfg)

    provider = CounterStoreProvider(
        cfg.security.redis_url,
        client_factory=redis_client_factory,
    )

    controls = cfg.auth
    rate_limiter = FallbackRateLimiter(
        primary=RedisFixedWindowRateLimiter(
            provider,
            limit=controls.rate_limit_max,
            window_ms=controls.rate_limit_window_ms,
        ),
        fallback=InMemoryFixedWindowRateLimiter(
            limit=controls.rate_limit_max,
            window_ms=controls.rate_limit_window_ms,
            clock=clock,
        ),
    )

    policy = LockoutPolicy(
        threshold=controls.lockout_threshold,
        window_ms=controls.lockout_window_ms,
        duration_ms=controls.lockout_duration_ms,
    )
    lockout = LockoutTracker(
        shared=RedisLockoutBackend(provider, policy),
        local=InMemoryLockoutBackend(policy, clock=clock),
    )

    authenticator = TokenAuthenticator(
        secret=secret,
        allow_dev_tokens=dev_tokens_allowed(cfg),
        clock=clock,
    )

    return AccessControls(
        store_provider=provider,
        rate_limiter=rate_limiter,
        lockout=lockout,
        authenticator=authenticator,
    )


def get_access_controls(request: Request) -> AccessControls:
    """FastAPI dependency returning the app's access-control container."""
    return request.app.state.access_controls
