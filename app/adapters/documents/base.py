from abc import ABC, abstractmethod

from app.schemas.auth import AuthUser
from app.schemas.documents import (
    CreateDocumentRequest,
    DocumentRecord,
    ShareDocumentRequest,
    UpdateDocumentRequest,
)


class AbstractDocumentServiceClient(ABC):
    """Interface for the downstream identity/document service.

    Implementations raise ``DownstreamServiceError`` for any non-2xx answer,
    carrying the downstream status code.
    """

    @abstractmethod
    async def signup(self, username: str, password: str) -> AuthUser:
        ...

    @abstractmethod
    async def login(self, username: str, password: str) -> AuthUser:
        """Check credentials; wrong ones raise DownstreamServiceError(401)."""
        ...

    @abstractmethod
    async def list_documents(self, user_id: str) -> list[DocumentRecord]:
        ...

    @abstractmethod
    async def create_document(self, user_id: str, body: CreateDocumentRequest) -> DocumentRecord:
        ...

    @abstractmethod
    async def get_document(self, user_id: str, document_id: str) -> DocumentRecord:
        ...

    @abstractmethod
    async def update_document(
        self, user_id: str, document_id: str, body: UpdateDocumentRequest
    ) -> DocumentRecord:
        ...

    @abstractmethod
    async def share_document(
        self, user_id: str, document_id: str, body: ShareDocumentRequest
    ) -> DocumentRecord:
        ...

    async def aclose(self) -> None:
        """Release network resources (no-op by default)."""
        return None
