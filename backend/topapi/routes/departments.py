"""
Topapi Backend: Department Route Handlers
===========================================

CRUD for /api/departments. Authenticated reads, admin-only writes.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from topapi.dependencies import get_department_service, get_page, require_principal
from topapi.pagination import PageRequest
from topapi.responses import success_response
from topapi.schemas.catalog import DepartmentCreate, DepartmentRecord, DepartmentUpdate
from topapi.schemas.common import (
    ERROR_RESPONSES,
    Envelope,
    MessageEnvelope,
    PageEnvelope,
    request_body,
)
from topapi.services.catalog_service import DepartmentService
from topapi.services.token_verifier import Principal

router = APIRouter(prefix="/api/departments", tags=["Departments"], responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=PageEnvelope[DepartmentRecord],
    summary="List departments",
)
async def list_departments(
    page: PageRequest = Depends(get_page),
    principal: Principal = Depends(require_principal),
    service: DepartmentService = Depends(get_department_service),
):
    rows, pagination = await service.list(page, None, principal)
    return success_response(rows, pagination=pagination)


@router.get(
    "/{department_id}",
    response_model=Envelope[DepartmentRecord],
    summary="Get a department",
)
async def get_department(
    department_id: str,
    principal: Principal = Depends(require_principal),
    service: DepartmentService = Depends(get_department_service),
):
    return success_response(await service.get(department_id, principal))


@router.post(
    "",
    response_model=Envelope[DepartmentRecord],
    openapi_extra=request_body(DepartmentCreate),
    status_code=201,
    summary="Create a department (admin)",
)
async def create_department(
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: DepartmentService = Depends(get_department_service),
):
    row = await service.create(payload, principal)
    return success_response(row, message="Department created successfully", status_code=201)


@router.patch(
    "/{department_id}",
    response_model=Envelope[DepartmentRecord],
    openapi_extra=request_body(DepartmentUpdate),
    summary="Update a department (admin)",
)
async def update_department(
    department_id: str,
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: DepartmentService = Depends(get_department_service),
):
    row = await service.update(department_id, payload, principal)
    return success_response(row, message="Department updated successfully")


@router.delete(
    "/{department_id}",
    response_model=MessageEnvelope,
    summary="Delete a department (admin)",
)
async def delete_department(
    department_id: str,
    principal: Principal = Depends(require_principal),
    service: DepartmentService = Depends(get_department_service),
):
    await service.delete(department_id, principal)
    return success_response(message="Department deleted successfully", include_data=False)
