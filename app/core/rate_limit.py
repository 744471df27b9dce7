"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapters into the HTTP layer.

Strategy:
- Fixed window per client address on authentication endpoints
  (20 requests per 60 s by default).
- Redis when reachable so all gateway instances share one budget; otherwise
  a per-process window.
- Requests without a resolvable client address share the "unknown" budget.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request

from app.core.access import AccessControls, get_access_controls
from app.core.errors import RateLimitAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"
TOO_MANY_REQUESTS_MESSAGE = "Too many requests"


def client_address(request: Request) -> str:
    """Source address of the request, or "unknown" if the server has none."""
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


async def enforce_auth_rate_limit(
    request: Request,
    access: Annotated[AccessControls, Depends(get_access_controls)],
) -> None:
    """FastAPI dependency enforcing the auth endpoint rate limit.

    Consumes one unit from the caller's budget and raises once it is spent.

    Raises:
        RateLimitAppError: 429 with Retry-After when the limit is exceeded.
    """

    address = client_address(request)
    result = await access.rate_limiter.consume(address)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "client_hash": hash_identifier(address),
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 1
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "client_hash": hash_identifier(address),
            "limit": result.limit,
            "retry_after_s": retry_after,
        },
    )
    raise RateLimitAppError(
        code="rate_limited",
        message=TOO_MANY_REQUESTS_MESSAGE,
        details={"retry_after": retry_after},
    )
