from app.adapters.documents.base import AbstractDocumentServiceClient
from app.adapters.documents.factory import create_document_client
from app.adapters.documents.http_client import HttpDocumentServiceClient

__all__ = [
    "AbstractDocumentServiceClient",
    "HttpDocumentServiceClient",
    "create_document_client",
]
