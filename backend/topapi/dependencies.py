"""
Topapi Backend: FastAPI Dependencies
======================================

What:  Injection points used by the route handlers.
How:   The service context lives on app.state; every other dependency is
       derived from it per request.

    get_context         → ServiceContext
    require_principal   → Principal (401 on any token problem)
    optional_principal  → Principal | None
    get_page            → PageRequest from ?page=&limit=
    get_*_service       → resource services bound to the context's store
"""

from typing import Optional

from fastapi import Depends, Header, Query, Request

from topapi.context import ServiceContext
from topapi.pagination import PageRequest, parse_page_request
from topapi.services.activity_log_service import ActivityLogService
from topapi.services.auth_service import AuthService
from topapi.services.catalog_service import CategoryService, DepartmentService
from topapi.services.inventory_service import InventoryService
from topapi.services.profile_service import ProfileService, UserService
from topapi.services.token_verifier import Principal


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context


# ── Authentication ────────────────────────────────────────────────────────


async def require_principal(
    authorization: Optional[str] = Header(default=None, include_in_schema=False),
    context: ServiceContext = Depends(get_context),
) -> Principal:
    return await context.verifier.verify(authorization)


async def optional_principal(
    authorization: Optional[str] = Header(default=None, include_in_schema=False),
    context: ServiceContext = Depends(get_context),
) -> Optional[Principal]:
    return await context.verifier.verify_optional(authorization)


# ── Pagination ────────────────────────────────────────────────────────────


def get_page(
    page: Optional[str] = Query(default=None, description="1-based page number (default 1)"),
    limit: Optional[str] = Query(default=None, description="Page size (default 10, max 100)"),
    context: ServiceContext = Depends(get_context),
) -> PageRequest:
    # Query values stay strings: non-numeric input falls back to defaults instead of a 400
    return parse_page_request(
        page,
        limit,
        default_limit=context.settings.default_page_limit,
        max_limit=context.settings.max_page_limit,
    )


# ── Services ──────────────────────────────────────────────────────────────


def get_profile_service(context: ServiceContext = Depends(get_context)) -> ProfileService:
    return ProfileService(context.store)


def get_user_service(context: ServiceContext = Depends(get_context)) -> UserService:
    return UserService(context.store, context.identity)


def get_inventory_service(context: ServiceContext = Depends(get_context)) -> InventoryService:
    return InventoryService(context.store)


def get_category_service(context: ServiceContext = Depends(get_context)) -> CategoryService:
    return CategoryService(context.store)


def get_department_service(context: ServiceContext = Depends(get_context)) -> DepartmentService:
    return DepartmentService(context.store)


def get_activity_log_service(context: ServiceContext = Depends(get_context)) -> ActivityLogService:
    return ActivityLogService(context.store)


def get_auth_service(context: ServiceContext = Depends(get_context)) -> AuthService:
    return AuthService(context.identity, context.store, context.settings.app_url)
