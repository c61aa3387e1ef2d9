"""
Topapi Backend: Department and Category Schemas
=================================================
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from topapi.schemas.common import InputSchema, NonEmptyStr, PatchStr


class DepartmentCreate(InputSchema):
    name: NonEmptyStr


class DepartmentUpdate(InputSchema):
    name: PatchStr = None


class CategoryCreate(InputSchema):
    department: NonEmptyStr
    name: NonEmptyStr


class CategoryUpdate(InputSchema):
    department: PatchStr = None
    name: PatchStr = None


class DepartmentRecord(BaseModel):
    id: uuid.UUID
    name: str
    created_by: Optional[uuid.UUID] = None
    created_at: datetime


class CategoryRecord(DepartmentRecord):
    department: str
