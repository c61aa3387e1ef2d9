"""
Topapi Backend: Profile SQLAlchemy Model
==========================================

What:  ORM model for the `profiles` table, one row per identity-provider account.
Why:   The identity provider owns credentials; the API owns display name,
       role and UI language.
Who:   Used by the record store for the profiles and users resources, and
       by Alembic for schema management.
When:  Inserted at signup; patched by the owner or an admin.

Table Design Rationale:
    - user_id is both primary key and the account id issued by the identity
      provider. The foreign key to auth.users lives in the migration only,
      since that schema is owned by the hosted backend.
    - role and language are closed enumerations enforced by CHECK constraints.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from topapi.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """Per-account profile data. Owned by the account, mutable by self or admin."""

    __tablename__ = "profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        comment="Account id issued by the identity provider",
    )

    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Canonical lowercase values only
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="staff",
        server_default=text("'staff'"),
    )
    language: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        default="en",
        server_default=text("'en'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'staff')", name="profiles_role_check"),
        CheckConstraint("language IN ('en', 'es')", name="profiles_language_check"),
    )

    def __repr__(self) -> str:
        return f"<Profile(user_id={self.user_id}, role='{self.role}')>"
