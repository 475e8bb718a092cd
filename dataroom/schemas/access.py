from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from dataroom.models.dataroom import AccessRequestStatus, AccessState
from dataroom.schemas.document import DocumentBrief


class NdaSignature(BaseModel):
    signer_name: str = Field(min_length=1, max_length=255)
    signer_entity: str | None = Field(default=None, max_length=255)
    signer_title: str | None = Field(default=None, max_length=255)


class AccessRequestCreate(NdaSignature):
    document_id: UUID


class AccessStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: UUID = Field(alias="requestId")
    status: str


class AccessRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    document_id: UUID
    status: AccessRequestStatus
    nda_signed_at: datetime | None = None
    signer_name: str | None = None
    signer_entity: str | None = None
    signer_title: str | None = None
    created_at: datetime
    updated_at: datetime


class AccessRequestAdminRead(AccessRequestRead):
    user_email: str | None = None
    document: DocumentBrief | None = None


class AccessRequestResult(BaseModel):
    status: AccessState
    created: bool
    request: AccessRequestRead | None = None


class AccessStatusRead(BaseModel):
    document_id: UUID
    status: AccessState
