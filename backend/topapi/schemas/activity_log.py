"""
Topapi Backend: Activity Log Schemas
======================================

Entries are immutable, so there is no update schema.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from topapi.schemas.common import Action, InputSchema, NonEmptyStr


class ActivityLogCreate(InputSchema):
    action: Action
    item_name: NonEmptyStr
    # Defaults to the calling principal when omitted
    user_id: Optional[uuid.UUID] = None
    item_id: Optional[uuid.UUID] = None


class ActivityLogFilters(InputSchema):
    user_id: Optional[uuid.UUID] = None
    action: Optional[Action] = None


class ActivityLogRecord(BaseModel):
    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    action: str
    item_id: Optional[uuid.UUID] = None
    item_name: str
    created_at: datetime
