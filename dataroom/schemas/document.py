from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dataroom.models.dataroom import AccessState, DocumentTier

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class DocumentBase(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    tier: str = "confidential"
    visibility: list[str] = Field(default_factory=lambda: ["admin"])
    content: str | None = None
    content_ref: str | None = Field(default=None, max_length=1024)
    icon: str = Field(default="file-text", max_length=60)


class DocumentCreate(DocumentBase):
    slug: str = Field(min_length=1, max_length=120, pattern=SLUG_PATTERN)


class DocumentUpdate(BaseModel):
    # slug is immutable, so it is rejected rather than ignored
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    tier: str | None = None
    visibility: list[str] | None = None
    content: str | None = None
    content_ref: str | None = Field(default=None, max_length=1024)
    icon: str | None = Field(default=None, max_length=60)
    is_active: bool | None = None

    @field_validator("title", "tier", "icon", "is_active")
    @classmethod
    def _not_null(cls, value):
        # omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    title: str
    description: str | None = None
    tier: DocumentTier
    visibility: list[str]
    content: str | None = None
    content_ref: str | None = None
    icon: str
    created_by: UUID | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class DocumentBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    title: str
    tier: DocumentTier


class DocumentSummary(BaseModel):
    """Catalog entry; never carries content."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    title: str
    description: str | None = None
    tier: DocumentTier
    icon: str
    access_status: AccessState
    updated_at: datetime


class DocumentContentRead(BaseModel):
    slug: str
    title: str
    content: str | None = None
    download_url: str | None = None


class ContentUploadRequest(BaseModel):
    file_name: str = Field(min_length=1, max_length=255, pattern=r"^[^/\\]+$")
    mime_type: str = Field(default="text/markdown", min_length=1, max_length=255)


class ContentUploadRead(BaseModel):
    upload_url: str
    content_ref: str
