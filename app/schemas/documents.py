"""Pydantic schemas for the document routes.

Documents are owned by the downstream document service, which also enforces
owner/editor/viewer permissions. The gateway only validates request shapes
and relays records.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SharedRole = Literal["viewer", "editor"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateDocumentRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=100_000)


class UpdateDocumentRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1, max_length=100_000)

    @model_validator(mode="after")
    def _require_one_field(self) -> "UpdateDocumentRequest":
        if self.title is None and self.content is None:
            raise ValueError("At least one field must be provided")
        return self


class ShareDocumentRequest(_CamelModel):
    user_id: str = Field(..., min_length=1, description="User receiving access.")
    role: SharedRole = Field(..., description="Access level to grant.")


class DocumentRecord(_CamelModel):
    id: str
    owner_user_id: str
    title: str
    content: str
    shared_with: dict[str, str] = Field(default_factory=dict)
    created_at: str
    updated_at: str

    @field_validator("id", "created_at", "updated_at", mode="before")
    @classmethod
    def _as_string(cls, value: object) -> str:
        # the document service sends numeric ids
        return str(value)


class DocumentResponse(BaseModel):
    document: DocumentRecord


class DocumentListResponse(BaseModel):
    documents: list[DocumentRecord]
