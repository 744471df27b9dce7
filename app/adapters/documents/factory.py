"""Factory for the document service client."""

from app.adapters.documents.base import AbstractDocumentServiceClient
from app.adapters.documents.http_client import HttpDocumentServiceClient
from app.core.config import Settings


def create_document_client(cfg: Settings) -> AbstractDocumentServiceClient:
    """Build the HTTP client from ``APP_DOCUMENT_SERVICE_*`` settings."""
    return HttpDocumentServiceClient(
        cfg.app.document_service_url,
        timeout_seconds=cfg.app.document_service_timeout_seconds,
    )
