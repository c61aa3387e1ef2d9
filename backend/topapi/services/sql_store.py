"""
Topapi Backend: SQL Record Store
==================================

What:  RecordStore implementation backed by async SQLAlchemy sessions.
Why:   The hosted backend exposes a plain Postgres database; talking to it
       through SQLAlchemy keeps one code path for production (asyncpg) and
       tests (aiosqlite).
How:   A table-name registry maps each resource table to its ORM model.
       Each call opens its own session and transaction, converts ORM rows to
       dicts, and wraps every SQLAlchemy failure in StoreError.

Query plan (list):
    SELECT ... FROM <table> WHERE <filters> [AND name ILIKE :term]
    ORDER BY created_at DESC OFFSET :offset LIMIT :limit
    plus SELECT count(*) with the same WHERE clause.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from sqlalchemy import delete, func, select, text, Uuid
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from topapi.database import Base
from topapi.exceptions import BadRequestError, StoreError
from topapi.models.activity_log import ActivityLogEntry
from topapi.models.catalog import Category, Department
from topapi.models.inventory import InventoryItem
from topapi.models.profile import Profile
from topapi.services.store_base import RecordStore, Row

logger = logging.getLogger(__name__)

TABLE_MODELS: Dict[str, Type[Base]] = {
    "profiles": Profile,
    "inventory_items": InventoryItem,
    "categories": Category,
    "departments": Department,
    "activity_log": ActivityLogEntry,
}


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so a search term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlRecordStore(RecordStore):
    """
    Record store over an async SQLAlchemy session factory.

    The engine is optional: when given, aclose() disposes it at shutdown.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        self._session_factory = session_factory
        self._engine = engine

    # ── Helpers ───────────────────────────────────────────────────────────

    def _model(self, table: str) -> Type[Base]:
        try:
            return TABLE_MODELS[table]
        except KeyError:
            raise StoreError(
                message=f"Unknown table '{table}'",
                context={"table": table},
            )

    def _column(self, model: Type[Base], name: str):
        columns = model.__table__.c
        if name not in columns:
            raise StoreError(
                message=f"Unknown column '{name}'",
                context={"table": model.__tablename__, "column": name},
            )
        return columns[name]

    def _coerce(self, model: Type[Base], name: str, value: Any) -> Any:
        """Parse string identifiers for UUID columns; a malformed id is a query error."""
        column = self._column(model, name)
        if value is not None and isinstance(column.type, Uuid) and not isinstance(value, uuid.UUID):
            try:
                return uuid.UUID(str(value))
            except ValueError:
                raise StoreError(
                    message=f'invalid input syntax for type uuid: "{value}"',
                    context={"table": model.__tablename__, "column": name},
                )
        return value

    @staticmethod
    def _to_dict(obj: Base) -> Row:
        return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}

    def _wrap(self, operation: str, table: str, exc: SQLAlchemyError) -> Exception:
        logger.error("Store %s on %s failed: %s", operation, table, str(exc))
        if isinstance(exc, IntegrityError):
            return BadRequestError(
                message="Record conflicts with existing data",
                context={"table": table, "operation": operation},
            )
        return StoreError(
            message=f"Could not {operation} {table}",
            context={"table": table, "error_type": type(exc).__name__},
        )

    # ── RecordStore ───────────────────────────────────────────────────────

    async def select_page(
        self,
        table: str,
        *,
        offset: int,
        limit: int,
        filters: Optional[Mapping[str, Any]] = None,
        search: Optional[Tuple[str, str]] = None,
    ) -> Tuple[List[Row], int]:
        model = self._model(table)
        conditions = [
            self._column(model, name) == self._coerce(model, name, value)
            for name, value in (filters or {}).items()
        ]
        if search:
            column, term = search
            conditions.append(
                self._column(model, column).ilike(f"%{escape_like(term)}%", escape="\\")
            )

        query = (
            select(model)
            .where(*conditions)
            .order_by(self._column(model, "created_at").desc())
            .offset(offset)
            .limit(limit)
        )
        count_query = select(func.count()).select_from(model).where(*conditions)

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(query)).scalars().all()
                total = (await session.execute(count_query)).scalar() or 0
        except SQLAlchemyError as e:
            raise self._wrap("list", table, e) from e

        return [self._to_dict(row) for row in rows], total

    async def select_one(self, table: str, key: str, value: Any) -> Optional[Row]:
        model = self._model(table)
        query = select(model).where(self._column(model, key) == self._coerce(model, key, value))
        try:
            async with self._session_factory() as session:
                obj = (await session.execute(query)).scalars().first()
        except SQLAlchemyError as e:
            raise self._wrap("read", table, e) from e
        return self._to_dict(obj) if obj is not None else None

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        model = self._model(table)
        obj = model(**{name: self._coerce(model, name, v) for name, v in values.items()})
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(obj)
                    await session.flush()
                    row = self._to_dict(obj)
        except SQLAlchemyError as e:
            raise self._wrap("insert into", table, e) from e
        logger.debug("Inserted row into %s", table)
        return row

    async def update(
        self, table: str, key: str, value: Any, changes: Mapping[str, Any]
    ) -> Optional[Row]:
        model = self._model(table)
        coerced = {name: self._coerce(model, name, v) for name, v in changes.items()}
        query = select(model).where(self._column(model, key) == self._coerce(model, key, value))
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    obj = (await session.execute(query)).scalars().first()
                    if obj is None:
                        return None
                    for name, v in coerced.items():
                        setattr(obj, name, v)
                    await session.flush()
                    row = self._to_dict(obj)
        except SQLAlchemyError as e:
            raise self._wrap("update", table, e) from e
        return row

    async def delete(self, table: str, key: str, value: Any) -> int:
        model = self._model(table)
        statement = delete(model).where(self._column(model, key) == self._coerce(model, key, value))
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(statement)
        except SQLAlchemyError as e:
            raise self._wrap("delete from", table, e) from e
        return result.rowcount or 0

    async def ping(self) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database ping failed: %s", str(e))
            raise StoreError(
                message="Database unreachable",
                context={"error_type": type(e).__name__},
            ) from e

    async def aclose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed, all connections closed")
