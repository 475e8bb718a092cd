from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class RoleUpdate(BaseModel):
    role: str


class UserProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    email: str
    role: str
    created_at: datetime
    updated_at: datetime


class CurrentUserRead(BaseModel):
    id: UUID
    email: str
    role: str
    is_admin: bool
