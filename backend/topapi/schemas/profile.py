"""
Topapi Backend: Profile Schemas
=================================

What:  Request bodies and the record shape for /api/profiles and /api/users.
Why:   role and language are closed enumerations; a write outside them is
       rejected before it reaches the store.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from topapi.schemas.common import InputSchema, Language, Role


class ProfileCreate(InputSchema):
    user_id: uuid.UUID
    name: Optional[str] = Field(default=None, max_length=200)
    role: Role = "staff"
    language: Language = "en"


class ProfileUpdate(InputSchema):
    """All fields optional; only the fields the client sent are written."""

    name: Optional[str] = Field(default=None, max_length=200)
    role: Role = None
    language: Language = None


class ProfileRecord(BaseModel):
    user_id: uuid.UUID
    name: Optional[str] = None
    role: str
    language: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
