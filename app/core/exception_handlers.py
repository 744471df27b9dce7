"""Global exception handlers for consistent error responses.

Every error leaves the gateway as ``{"message": ...}`` with a fixed,
non-discriminating message, so clients cannot tell e.g. an expired token from
a forged one.

Design:
- AuthenticationAppError → 401
- RateLimitAppError → 429 + Retry-After
- AccountLockedAppError → 429
- ValidationAppError / request body validation → 400
- DownstreamServiceError → downstream 4xx passed through, otherwise 502
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import (
    AccountLockedAppError,
    AppError,
    AuthenticationAppError,
    DownstreamServiceError,
    RateLimitAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = "Invalid request"
UPSTREAM_FAILURE_MESSAGE = "Upstream service failure"
UNEXPECTED_ERROR_MESSAGE = "Unexpected error"


def _status_for(exc: AppError) -> int:
    if isinstance(exc, AuthenticationAppError):
        return 401
    if isinstance(exc, (RateLimitAppError, AccountLockedAppError)):
        return 429
    if isinstance(exc, DownstreamServiceError):
        return exc.status_code if 400 <= exc.status_code < 500 else 502
    if isinstance(exc, ValidationAppError):
        return 400
    return 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code and a ``message`` body.
    """
    status_code = _status_for(exc)
    message = exc.message
    if status_code == 502:
        message = UPSTREAM_FAILURE_MESSAGE
    elif status_code == 500:
        message = UNEXPECTED_ERROR_MESSAGE

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitAppError):
        retry_after = (exc.details or {}).get("retry_after", 1)
        headers = {"Retry-After": str(retry_after)}

    return JSONResponse(
        status_code=status_code,
        content={"message": message},
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed bodies/params with 400 instead of FastAPI's 422."""
    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(exc.errors()),
        },
    )
    return JSONResponse(
        status_code=400,
        content={"message": INVALID_REQUEST_MESSAGE, "errors": jsonable_encoder(exc.errors())},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (404, 405) in the same ``message`` shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure for debugging while returning a generic message.
    No stack traces or exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={"message": UNEXPECTED_ERROR_MESSAGE},
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
