"""
Topapi Backend: Category Route Handlers
=========================================

CRUD for /api/categories. Authenticated reads, admin-only writes.
`?department=` narrows the list to one department.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from topapi.dependencies import get_category_service, get_page, require_principal
from topapi.pagination import PageRequest
from topapi.responses import success_response
from topapi.schemas.catalog import CategoryCreate, CategoryRecord, CategoryUpdate
from topapi.schemas.common import (
    ERROR_RESPONSES,
    Envelope,
    MessageEnvelope,
    PageEnvelope,
    request_body,
)
from topapi.services.catalog_service import CategoryService
from topapi.services.token_verifier import Principal

router = APIRouter(prefix="/api/categories", tags=["Categories"], responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=PageEnvelope[CategoryRecord],
    summary="List categories",
)
async def list_categories(
    department: Optional[str] = Query(default=None, description="Exact department name"),
    page: PageRequest = Depends(get_page),
    principal: Principal = Depends(require_principal),
    service: CategoryService = Depends(get_category_service),
):
    rows, pagination = await service.list(page, {"department": department}, principal)
    return success_response(rows, pagination=pagination)


@router.get(
    "/{category_id}",
    response_model=Envelope[CategoryRecord],
    summary="Get a category",
)
async def get_category(
    category_id: str,
    principal: Principal = Depends(require_principal),
    service: CategoryService = Depends(get_category_service),
):
    return success_response(await service.get(category_id, principal))


@router.post(
    "",
    response_model=Envelope[CategoryRecord],
    openapi_extra=request_body(CategoryCreate),
    status_code=201,
    summary="Create a category (admin)",
)
async def create_category(
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: CategoryService = Depends(get_category_service),
):
    row = await service.create(payload, principal)
    return success_response(row, message="Category created successfully", status_code=201)


@router.patch(
    "/{category_id}",
    response_model=Envelope[CategoryRecord],
    openapi_extra=request_body(CategoryUpdate),
    summary="Update a category (admin)",
)
async def update_category(
    category_id: str,
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: CategoryService = Depends(get_category_service),
):
    row = await service.update(category_id, payload, principal)
    return success_response(row, message="Category updated successfully")


@router.delete(
    "/{category_id}",
    response_model=MessageEnvelope,
    summary="Delete a category (admin)",
)
async def delete_category(
    category_id: str,
    principal: Principal = Depends(require_principal),
    service: CategoryService = Depends(get_category_service),
):
    await service.delete(category_id, principal)
    return success_response(message="Category deleted successfully", include_data=False)
