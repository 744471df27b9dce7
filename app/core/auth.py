"""Bearer token authentication.

Two token kinds are accepted:
- Development tokens (``dev-token-<user>``): unsigned, identity taken verbatim.
  Only honoured outside production and when ALLOW_DEV_TOKENS is not false.
- Signed tokens: HS256 JWTs with ``sub`` (user id), ``iat`` and ``exp``.

Every rejection reaches the client as a 401 with one of two fixed messages.
The precise reason (expired, bad signature, ...) is logged, never returned.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Annotated, Callable

import jwt
from fastapi import Header, Request

from app.core.errors import AuthenticationAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
DEV_TOKEN_PREFIX = "dev-token-"
JWT_ALGORITHM = "HS256"
TOKEN_TTL_SECONDS = 2 * 60 * 60

UNAUTHORIZED_MESSAGE = "Unauthorized"
INVALID_TOKEN_MESSAGE = "Invalid token"


class AuthFailureReason(str, Enum):
    """Internal rejection reasons (logging only)."""

    MISSING_HEADER = "missing_header"
    NOT_BEARER = "not_bearer"
    EMPTY_TOKEN = "empty_token"
    EMPTY_DEV_IDENTITY = "empty_dev_identity"
    NO_SECRET = "no_secret"
    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"
    MALFORMED = "malformed"
    MISSING_SUBJECT = "missing_subject"
    UNEXPECTED = "unexpected"


def _reject(reason: AuthFailureReason, message: str) -> AuthenticationAppError:
    logger.warning("auth.token_rejected", extra={"reason": reason.value})
    return AuthenticationAppError(
        code="unauthorized",
        message=message,
        details={"reason": reason.value},
    )


def extract_bearer_token(authorization: str | None) -> str:
    """Return the trimmed token from an Authorization header value.

    Raises:
        AuthenticationAppError: If the header is absent, not a Bearer header,
            or carries an empty token.
    """
    if authorization is None:
        raise _reject(AuthFailureReason.MISSING_HEADER, UNAUTHORIZED_MESSAGE)
    if not authorization.startswith(BEARER_PREFIX):
        raise _reject(AuthFailureReason.NOT_BEARER, UNAUTHORIZED_MESSAGE)

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise _reject(AuthFailureReason.EMPTY_TOKEN, UNAUTHORIZED_MESSAGE)
    return token


class TokenAuthenticator:
    """Verifies bearer tokens and issues signed ones."""

    def __init__(
        self,
        *,
        secret: str | None,
        allow_dev_tokens: bool,
        token_ttl_seconds: int = TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret or None
        self._allow_dev_tokens = allow_dev_tokens
        self._token_ttl_seconds = token_ttl_seconds
        self._clock = clock

    @property
    def allow_dev_tokens(self) -> bool:
        return self._allow_dev_tokens

    def authenticate(self, authorization: str | None) -> str:
        """Resolve the caller identity from an Authorization header value.

        Args:
            authorization: Raw header value, or None when absent.

        Returns:
            The caller's user id.

        Raises:
            AuthenticationAppError: For any rejection; message is either
                "Unauthorized" (header problems) or "Invalid token".
        """
        token = extract_bearer_token(authorization)

        if self._allow_dev_tokens and token.startswith(DEV_TOKEN_PREFIX):
            user_id = token[len(DEV_TOKEN_PREFIX):]
            if not user_id:
                raise _reject(AuthFailureReason.EMPTY_DEV_IDENTITY, INVALID_TOKEN_MESSAGE)
            return user_id

        return self._verify_signed(token)

    def _verify_signed(self, token: str) -> str:
        if self._secret is None:
            raise _reject(AuthFailureReason.NO_SECRET, INVALID_TOKEN_MESSAGE)

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise _reject(AuthFailureReason.EXPIRED, INVALID_TOKEN_MESSAGE) from exc
        except jwt.InvalidSignatureError as exc:
            raise _reject(AuthFailureReason.BAD_SIGNATURE, INVALID_TOKEN_MESSAGE) from exc
        except jwt.InvalidTokenError as exc:
            raise _reject(AuthFailureReason.MALFORMED, INVALID_TOKEN_MESSAGE) from exc

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise _reject(AuthFailureReason.MISSING_SUBJECT, INVALID_TOKEN_MESSAGE)
        return subject

    def issue_token(self, user_id: str) -> str:
        """Sign a token for ``user_id`` valid for two hours."""
        if self._secret is None:
            raise RuntimeError("cannot issue tokens without a signing secret")

        issued_at = int(self._clock())
        payload = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self._token_ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)


async def require_auth(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """FastAPI dependency resolving the caller identity.

    On success the user id is stored on ``request.state.auth_user_id`` for the
    rest of the request. On failure the request ends with a 401 before the
    route handler runs.

    Usage:
        @router.get("/documents")
        async def list_documents(user_id: str = Depends(require_auth)): ...
    """
    authenticator: TokenAuthenticator = request.app.state.access_controls.authenticator

    try:
        user_id = authenticator.authenticate(authorization)
    except AuthenticationAppError:
        raise
    except Exception as exc:
        logger.exception(
            "auth.unexpected_error",
            extra={"error_type": type(exc).__name__},
        )
        raise _reject(AuthFailureReason.UNEXPECTED, INVALID_TOKEN_MESSAGE) from exc

    request.state.auth_user_id = user_id
    logger.debug("auth.success", extra={"user_hash": hash_identifier(user_id)})
    return user_id
