from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dataroom.schemas.access import AccessRequestRead
from dataroom.schemas.document import DocumentBrief

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class InviteCreate(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    document_id: UUID
    expires_in_days: int | None = Field(default=None, ge=1, le=365)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not re.match(EMAIL_PATTERN, value):
            raise ValueError("Invalid email address")
        return value


class InviteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token: str
    email: str
    document_id: UUID
    claimed: bool
    claimed_by: UUID | None = None
    claimed_at: datetime | None = None
    created_by: UUID
    expires_at: datetime
    created_at: datetime


class InviteCreated(BaseModel):
    invite_url: str
    token: str
    expires_at: datetime


class InvitePublicRead(BaseModel):
    """What an invitee sees before claiming: no token echo, no content."""

    email: str
    expires_at: datetime
    document: DocumentBrief
    document_description: str | None = None


class InviteClaimResult(BaseModel):
    status: str
    document_slug: str
    request: AccessRequestRead
