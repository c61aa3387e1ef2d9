"""
Topapi Backend: Activity Log SQLAlchemy Model
===============================================

What:  ORM model for the `activity_log` table.
Why:   Append-mostly audit trail of inventory changes, written by clients.
       Entries are never updated; only an admin may delete one.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from topapi.database import Base
from topapi.models.profile import utcnow


class ActivityLogEntry(Base):
    __tablename__ = "activity_log"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    # Values: created | updated | deleted
    action: Mapped[str] = mapped_column(String(20), nullable=False)

    # Kept as plain columns: the item may have been deleted since
    item_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    item_name: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        CheckConstraint(
            "action IN ('created', 'updated', 'deleted')", name="activity_log_action_check"
        ),
        Index("idx_activity_log_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<ActivityLogEntry(id={self.id}, action='{self.action}', item='{self.item_name}')>"
