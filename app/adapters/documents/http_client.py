"""HTTP client for the downstream document service."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.adapters.documents.base import AbstractDocumentServiceClient
from app.core.errors import DownstreamServiceError
from app.core.logging import get_request_id
from app.schemas.auth import AuthUser
from app.schemas.documents import (
    CreateDocumentRequest,
    DocumentRecord,
    ShareDocumentRequest,
    UpdateDocumentRequest,
)

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"
DEFAULT_ERROR_MESSAGE = "Downstream request failed"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return DEFAULT_ERROR_MESSAGE
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return DEFAULT_ERROR_MESSAGE


class HttpDocumentServiceClient(AbstractDocumentServiceClient):
    """Calls the document service over HTTP with ``httpx.AsyncClient``.

    The caller identity travels in the ``X-User-Id`` header; the document
    service trusts it because only the gateway can reach it.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Document service root, e.g. ``http://localhost:8081``.
            timeout_seconds: Per-request timeout.
            transport: Optional transport override (tests use MockTransport).
        """
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        user_id: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if user_id is not None:
            headers[USER_HEADER] = user_id
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id

        try:
            response = await self._client.request(method, path, headers=headers, json=json)
        except httpx.HTTPError as exc:
            logger.error(
                "document_service.transport_error",
                extra={"path": path, "error_type": type(exc).__name__},
            )
            raise DownstreamServiceError(503, "Document service unavailable") from exc

        if response.is_success:
            return response.json() if response.content else None

        logger.info(
            "document_service.error_response",
            extra={"path": path, "status_code": response.status_code},
        )
        raise DownstreamServiceError(response.status_code, _error_message(response))

    async def signup(self, username: str, password: str) -> AuthUser:
        body = await self._request(
            "POST",
            "/api/v1/auth/signup",
            json={"username": username, "password": password},
        )
        return AuthUser.model_validate(body["user"])

    async def login(self, username: str, password: str) -> AuthUser:
        body = await self._request(
            "POST",
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        return AuthUser.model_validate(body["user"])

    async def list_documents(self, user_id: str) -> list[DocumentRecord]:
        body = await self._request("GET", "/api/v1/documents", user_id=user_id)
        return [DocumentRecord.model_validate(item) for item in body["documents"]]

    async def create_document(self, user_id: str, body: CreateDocumentRequest) -> DocumentRecord:
        response = await self._request(
            "POST", "/api/v1/documents", user_id=user_id, json=body.model_dump()
        )
        return DocumentRecord.model_validate(response["document"])

    async def get_document(self, user_id: str, document_id: str) -> DocumentRecord:
        response = await self._request("GET", f"/api/v1/documents/{document_id}", user_id=user_id)
        return DocumentRecord.model_validate(response["document"])

    async def update_document(
        self, user_id: str, document_id: str, body: UpdateDocumentRequest
    ) -> DocumentRecord:
        response = await self._request(
            "PATCH",
            f"/api/v1/documents/{document_id}",
            user_id=user_id,
            json=body.model_dump(exclude_none=True),
        )
        return DocumentRecord.model_validate(response["document"])

    async def share_document(
        self, user_id: str, document_id: str, body: ShareDocumentRequest
    ) -> DocumentRecord:
        response = await self._request(
            "POST",
            f"/api/v1/documents/{document_id}/share",
            user_id=user_id,
            json={"userId": body.user_id, "role": body.role.upper()},
        )
        return DocumentRecord.model_validate(response["document"])

    async def aclose(self) -> None:
        await self._client.aclose()
