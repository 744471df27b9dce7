from __future__ import annotations

from fastapi import Request

from app.adapters.documents import AbstractDocumentServiceClient


def get_document_client(request: Request) -> AbstractDocumentServiceClient:
    """FastAPI dependency returning the app's document service client."""
    return request.app.state.document_client
