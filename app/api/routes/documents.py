from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from app.adapters.documents import AbstractDocumentServiceClient
from app.api.deps import get_document_client
from app.core.auth import require_auth
from app.schemas.documents import (
    CreateDocumentRequest,
    DocumentListResponse,
    DocumentResponse,
    ShareDocumentRequest,
    UpdateDocumentRequest,
)

router = APIRouter(prefix="/documents", tags=["Documents"])

UserId = Annotated[str, Depends(require_auth)]
DocumentClient = Annotated[AbstractDocumentServiceClient, Depends(get_document_client)]
# Numeric ids only; anything else is rejected before reaching downstream.
DocumentId = Annotated[int, Path(ge=1)]


@router.get("", response_model=DocumentListResponse)
async def list_documents(user_id: UserId, documents: DocumentClient) -> DocumentListResponse:
    """List documents the caller owns or has been shared."""
    return DocumentListResponse(documents=await documents.list_documents(user_id))


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    body: CreateDocumentRequest,
    user_id: UserId,
    documents: DocumentClient,
) -> DocumentResponse:
    return DocumentResponse(document=await documents.create_document(user_id, body))


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: DocumentId,
    user_id: UserId,
    documents: DocumentClient,
) -> DocumentResponse:
    return DocumentResponse(document=await documents.get_document(user_id, str(document_id)))


@router.patch("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: DocumentId,
    body: UpdateDocumentRequest,
    user_id: UserId,
    documents: DocumentClient,
) -> DocumentResponse:
    """Update title and/or content; the document service checks edit rights."""
    document = await documents.update_document(user_id, str(document_id), body)
    return DocumentResponse(document=document)


@router.post("/{document_id}/share", response_model=DocumentResponse)
async def share_document(
    document_id: DocumentId,
    body: ShareDocumentRequest,
    user_id: UserId,
    documents: DocumentClient,
) -> DocumentResponse:
    """Grant viewer/editor access; only the owner may share."""
    document = await documents.share_document(user_id, str(document_id), body)
    return DocumentResponse(document=document)
