"""
Topapi Backend: Activity Log Route Handlers
=============================================

What:  /api/activity-log. Authenticated list/get/create; admin-only delete.
       There is no PATCH route: entries are immutable.

Filters:
    user_id  UUID of the acting user
    action   created | updated | deleted
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from topapi.dependencies import get_activity_log_service, get_page, require_principal
from topapi.pagination import PageRequest
from topapi.responses import success_response
from topapi.schemas.activity_log import ActivityLogCreate, ActivityLogRecord
from topapi.schemas.common import (
    ERROR_RESPONSES,
    Envelope,
    MessageEnvelope,
    PageEnvelope,
    request_body,
)
from topapi.services.activity_log_service import ActivityLogService
from topapi.services.token_verifier import Principal

router = APIRouter(prefix="/api/activity-log", tags=["Activity Log"], responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=PageEnvelope[ActivityLogRecord],
    summary="List activity log entries",
)
async def list_activity_log(
    user_id: Optional[str] = Query(default=None),
    action: Optional[str] = Query(default=None),
    page: PageRequest = Depends(get_page),
    principal: Principal = Depends(require_principal),
    service: ActivityLogService = Depends(get_activity_log_service),
):
    rows, pagination = await service.list(page, {"user_id": user_id, "action": action}, principal)
    return success_response(rows, pagination=pagination)


@router.get(
    "/{entry_id}",
    response_model=Envelope[ActivityLogRecord],
    summary="Get an activity log entry",
)
async def get_activity_log_entry(
    entry_id: str,
    principal: Principal = Depends(require_principal),
    service: ActivityLogService = Depends(get_activity_log_service),
):
    return success_response(await service.get(entry_id, principal))


@router.post(
    "",
    response_model=Envelope[ActivityLogRecord],
    openapi_extra=request_body(ActivityLogCreate),
    status_code=201,
    summary="Record an activity",
)
async def create_activity_log_entry(
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: ActivityLogService = Depends(get_activity_log_service),
):
    row = await service.create(payload, principal)
    return success_response(row, message="Activity log entry created successfully", status_code=201)


@router.delete(
    "/{entry_id}",
    response_model=MessageEnvelope,
    summary="Delete an activity log entry (admin)",
)
async def delete_activity_log_entry(
    entry_id: str,
    principal: Principal = Depends(require_principal),
    service: ActivityLogService = Depends(get_activity_log_service),
):
    await service.delete(entry_id, principal)
    return success_response(message="Activity log entry deleted successfully", include_data=False)
