"""
Topapi Backend: Inventory Schemas
===================================

What:  Request bodies and the record shape for /api/inventory.

Rules:
    name, department, category, unit:  non-empty after trimming
    quantity:                           integer >= 0, required on create
    min_quantity:                       integer >= 0, defaults to 0
    description:                        free text, nullable
On PATCH every field is optional, but an explicit null is rejected
(description excepted).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from topapi.schemas.common import InputSchema, NonEmptyStr, PatchCount, PatchStr


class InventoryItemCreate(InputSchema):
    name: NonEmptyStr
    department: NonEmptyStr
    category: NonEmptyStr
    quantity: int = Field(ge=0)
    min_quantity: int = Field(default=0, ge=0)
    unit: NonEmptyStr
    description: Optional[str] = None


class InventoryItemUpdate(InputSchema):
    name: PatchStr = None
    department: PatchStr = None
    category: PatchStr = None
    quantity: PatchCount = None
    min_quantity: PatchCount = None
    unit: PatchStr = None
    description: Optional[str] = None


class InventoryItemRecord(BaseModel):
    id: uuid.UUID
    name: str
    department: str
    category: str
    quantity: int
    min_quantity: int
    unit: str
    description: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
