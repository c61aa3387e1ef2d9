"""
Topapi Backend: Database Engine and Session Factory
=====================================================

What:  Async SQLAlchemy engine, session factory and declarative base.
Why:   Centralizes connection-pool configuration for the hosted Postgres
       instance that acts as the record store.
How:   `create_engine_from_settings()` builds the pooled engine;
       `create_session_factory()` wraps it. Both are owned by the service
       context (see context.py) instead of living at module level, so tests
       can point the store at any engine.

Connection Pooling Strategy:
    pool_size / max_overflow from settings
    pool_pre_ping:     validates connections before use (hosted DBs drop idle ones)
    pool_recycle=1800: the hosted pooler closes connections after ~30 minutes
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from topapi.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for autogenerate.
    """

    pass


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the pooled async engine described by the settings."""
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=1800,
        # Echo SQL queries in DEBUG mode for development visibility
        echo=settings.log_level == "DEBUG",
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory with expire_on_commit=False.

    Rows are converted to dicts after commit; expiring them would trigger
    lazy reloads outside the session.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
