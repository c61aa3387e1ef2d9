"""
Topapi Backend: Resource Service Base
=======================================

What:  Generic list/get/create/update/delete for one table, composed from
       the validation layer, the authorization rules and one store call.
Why:   Every resource follows the same pipeline; subclasses only declare
       their table, schemas, filters and authorization policy.
How:   Each operation runs, in order, and short-circuits on the first failure:

    ┌────────────┐   ┌──────────────┐   ┌──────────────┐   ┌─────────────┐
    │  Validate  │──▶│  Authorize   │──▶│  Store call  │──▶│  Row / Page │
    │  (400)     │   │  (403)       │   │  (404 / 500) │   │             │
    └────────────┘   └──────────────┘   └──────────────┘   └─────────────┘

    The token verifier has already run as a route dependency.

Common policy:
    - get() reports both "no row" and a store error as NotFoundError
    - update() stamps updated_at on tables that carry it; no matching row → 404
    - delete() is idempotent: deleting a missing row succeeds
    - unauthorized writes never reach the store
    - no retries: a failed store call fails the request
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel

from topapi.exceptions import BadRequestError, NotFoundError, StoreError
from topapi.pagination import PageRequest
from topapi.services.store_base import RecordStore, Row
from topapi.services.token_verifier import Principal
from topapi.validation import validate_identifier, validate_payload

logger = logging.getLogger(__name__)


class ResourceService:
    """
    Base class for the per-table services.

    Class attributes:
        table:            Store table name
        key:              Identifier column used by get/update/delete
        label:            Human name used in success messages ("Category")
        not_found_message / invalid_id_message: client-facing errors
        create_schema / update_schema: pydantic input schemas (None = unsupported)
        filter_schema:    Optional schema validating list filters
        filter_columns:   Exact-match list filters
        search_column:    Column matched by the `search` filter (ILIKE)
        has_updated_at:   Stamp updated_at on update
        records_creator:  Store the principal id in created_by on create
    """

    table: str = ""
    key: str = "id"
    label: str = "Resource"
    not_found_message: str = "Resource not found"
    invalid_id_message: str = "Invalid ID"
    create_schema: Optional[Type[BaseModel]] = None
    update_schema: Optional[Type[BaseModel]] = None
    filter_schema: Optional[Type[BaseModel]] = None
    filter_columns: Tuple[str, ...] = ()
    search_column: Optional[str] = None
    has_updated_at: bool = False
    records_creator: bool = False

    def __init__(self, store: RecordStore):
        self.store = store

    # ── Policy hooks ──────────────────────────────────────────────────────
    # Default: anything the route let through is allowed.

    def authorize_read(self, principal: Optional[Principal]) -> None:
        return None

    def authorize_create(self, principal: Principal, values: Dict[str, Any]) -> None:
        return None

    def authorize_update(self, principal: Principal, record_id: str, values: Dict[str, Any]) -> None:
        return None

    def authorize_delete(self, principal: Principal, record_id: str) -> None:
        return None

    def prepare_create(self, values: Dict[str, Any], principal: Principal) -> Dict[str, Any]:
        if self.records_creator:
            values["created_by"] = principal.id
        return values

    async def after_update(self, record_id: str, changes: Dict[str, Any], row: Row) -> None:
        return None

    # ── Helpers ───────────────────────────────────────────────────────────

    def _check_id(self, record_id: Any) -> str:
        return validate_identifier(record_id, self.invalid_id_message, field=self.key)

    def parse_filters(
        self, filters: Optional[Mapping[str, Any]]
    ) -> Tuple[Dict[str, Any], Optional[Tuple[str, str]]]:
        """Split raw query filters into exact matches and an optional search term."""
        filters = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        if self.filter_schema is not None:
            filters = validate_payload(self.filter_schema, filters, partial=True)
        exact = {name: filters[name] for name in self.filter_columns if filters.get(name) is not None}
        search = None
        if self.search_column and filters.get("search"):
            search = (self.search_column, str(filters["search"]))
        return exact, search

    # ── Operations ────────────────────────────────────────────────────────

    async def list(
        self,
        page: PageRequest,
        filters: Optional[Mapping[str, Any]] = None,
        principal: Optional[Principal] = None,
    ) -> Tuple[List[Row], Dict[str, int]]:
        exact, search = self.parse_filters(filters)
        self.authorize_read(principal)
        rows, total = await self.store.select_page(
            self.table,
            offset=page.offset,
            limit=page.limit,
            filters=exact,
            search=search,
        )
        return rows, page.page_info(total)

    async def get(self, record_id: Any, principal: Optional[Principal] = None) -> Row:
        record_id = self._check_id(record_id)
        self.authorize_read(principal)
        try:
            row = await self.store.select_one(self.table, self.key, record_id)
        except StoreError as e:
            logger.warning("Lookup of %s %s failed: %s", self.table, record_id, e.message)
            raise NotFoundError(
                resource=self.label, resource_id=record_id, message=self.not_found_message
            ) from e
        if row is None:
            raise NotFoundError(
                resource=self.label, resource_id=record_id, message=self.not_found_message
            )
        return row

    async def create(self, payload: Any, principal: Principal) -> Row:
        if self.create_schema is None:
            raise BadRequestError(f"{self.label} records cannot be created here")
        values = validate_payload(self.create_schema, payload)
        self.authorize_create(principal, values)
        row = await self.store.insert(self.table, self.prepare_create(values, principal))
        logger.info("%s created by %s", self.label, principal.id)
        return row

    async def update(self, record_id: Any, payload: Any, principal: Principal) -> Row:
        if self.update_schema is None:
            raise BadRequestError(f"{self.label} records cannot be modified")
        record_id = self._check_id(record_id)
        changes = validate_payload(self.update_schema, payload, partial=True)
        self.authorize_update(principal, record_id, changes)
        if self.has_updated_at:
            changes["updated_at"] = datetime.now(timezone.utc)

        row = await self.store.update(self.table, self.key, record_id, changes)
        if row is None:
            raise NotFoundError(
                resource=self.label, resource_id=record_id, message=self.not_found_message
            )
        await self.after_update(record_id, changes, row)
        return row

    async def delete(self, record_id: Any, principal: Principal) -> None:
        record_id = self._check_id(record_id)
        self.authorize_delete(principal, record_id)
        removed = await self.store.delete(self.table, self.key, record_id)
        logger.info("%s %s deleted by %s (%d rows)", self.label, record_id, principal.id, removed)
