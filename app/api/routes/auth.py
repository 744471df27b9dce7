"""Signup and login endpoints.

Both endpoints sit behind the per-address rate limit. Login additionally
consults the lockout tracker before the document service checks credentials,
and feeds it every 401 the document service returns.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from app.adapters.documents import AbstractDocumentServiceClient
from app.api.deps import get_document_client
from app.core.access import AccessControls, get_access_controls
from app.core.errors import AccountLockedAppError, DownstreamServiceError
from app.core.logging import hash_identifier
from app.core.rate_limit import client_address, enforce_auth_rate_limit
from app.schemas.auth import LoginRequest, SignupRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
    dependencies=[Depends(enforce_auth_rate_limit)],
)

ACCOUNT_LOCKED_MESSAGE = "Account temporarily locked. Try again later."


def _account_locked() -> AccountLockedAppError:
    return AccountLockedAppError(code="account_locked", message=ACCOUNT_LOCKED_MESSAGE)


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def signup(
    body: SignupRequest,
    access: Annotated[AccessControls, Depends(get_access_controls)],
    documents: Annotated[AbstractDocumentServiceClient, Depends(get_document_client)],
) -> TokenResponse:
    user = await documents.signup(body.username, body.password)
    token = access.authenticator.issue_token(user.user_id)
    return TokenResponse(token=token, user_id=user.user_id)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    access: Annotated[AccessControls, Depends(get_access_controls)],
    documents: Annotated[AbstractDocumentServiceClient, Depends(get_document_client)],
) -> TokenResponse:
    """Exchange credentials for a signed token.

    Order: lockout check, credential check downstream, then failure
    bookkeeping. A locked pair gets 429 even with the right password.

    Raises:
        AccountLockedAppError: The username/address pair is locked, or this
            failure just locked it.
        DownstreamServiceError: Wrong credentials (401) or downstream failure.
    """
    address = client_address(request)
    if await access.lockout.is_locked(body.username, address):
        logger.info("auth.login_locked", extra={"user_hash": hash_identifier(body.username.lower())})
        raise _account_locked()

    try:
        user = await documents.login(body.username, body.password)
    except DownstreamServiceError as exc:
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            if await access.lockout.record_failure(body.username, address):
                raise _account_locked() from exc
        raise

    await access.lockout.clear_failures(body.username, address)
    token = access.authenticator.issue_token(user.user_id)
    return TokenResponse(token=token, user_id=user.user_id)
