"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Fields are optional to keep shapes consistent without forcing every
    raiser to fill them in.
    """

    code: str
    message: str
    hint: str
    reason: str
    http_status: int
    retry_after: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message (safe to send to clients).
        details: Optional structured details for logs only.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""


class ConfigurationAppError(AppError):
    """Raised at startup when configuration is unsafe to serve traffic."""


class AuthenticationAppError(AppError):
    """Raised when a caller cannot be authenticated."""


class RateLimitAppError(AppError):
    """Raised when a caller exceeds its request budget."""


class AccountLockedAppError(AppError):
    """Raised when a username/address pair is temporarily locked."""


class DownstreamServiceError(AppError):
    """Raised when the document service answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(
            code="downstream_error",
            message=message,
            details={"http_status": status_code},
        )
        self.status_code = status_code
