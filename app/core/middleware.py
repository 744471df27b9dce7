"""HTTP middleware for request correlation, access logging and hardening headers.

- ``request_id_middleware`` accepts an incoming X-Request-ID (or generates a
  UUID), keeps it in contextvars for log correlation, echoes it back and logs
  one ``http.request`` line per request.
- ``security_headers_middleware`` adds conservative browser hardening headers
  to every response, plus HSTS when the request arrived over HTTPS.

Usage:
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-site",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a correlation id and log the request outcome.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        The downstream response with request id and duration headers added.
    """

    cfg = getattr(request.app.state, "settings", settings)
    header_name = cfg.log.request_id_header
    request_id = (request.headers.get(header_name) or "").strip() or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "route": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    response: Response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)

    if request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https":
        response.headers.setdefault("Strict-Transport-Security", HSTS_VALUE)
    return response
