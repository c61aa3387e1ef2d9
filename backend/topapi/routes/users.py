"""
Topapi Backend: User Route Handlers
=====================================

What:  /api/users: the profiles table seen from account management.
       All routes require authentication. Accounts are created through
       POST /api/auth/signup, so there is no POST here.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from topapi.dependencies import get_page, get_user_service, require_principal
from topapi.pagination import PageRequest
from topapi.responses import success_response
from topapi.schemas.common import (
    ERROR_RESPONSES,
    Envelope,
    MessageEnvelope,
    PageEnvelope,
    request_body,
)
from topapi.schemas.profile import ProfileRecord, ProfileUpdate
from topapi.services.profile_service import UserService
from topapi.services.token_verifier import Principal

router = APIRouter(prefix="/api/users", tags=["Users"], responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=PageEnvelope[ProfileRecord],
    summary="List users",
)
async def list_users(
    page: PageRequest = Depends(get_page),
    principal: Principal = Depends(require_principal),
    service: UserService = Depends(get_user_service),
):
    rows, pagination = await service.list(page, None, principal)
    return success_response(rows, pagination=pagination)


@router.get(
    "/{user_id}",
    response_model=Envelope[ProfileRecord],
    summary="Get a user",
)
async def get_user(
    user_id: str,
    principal: Principal = Depends(require_principal),
    service: UserService = Depends(get_user_service),
):
    return success_response(await service.get(user_id, principal))


@router.patch(
    "/{user_id}",
    response_model=Envelope[ProfileRecord],
    openapi_extra=request_body(ProfileUpdate),
    summary="Update a user",
    description="Self or admin. name/role/language are mirrored into the account metadata.",
)
async def update_user(
    user_id: str,
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: UserService = Depends(get_user_service),
):
    row = await service.update(user_id, payload, principal)
    return success_response(row, message="User profile updated successfully")


@router.delete(
    "/{user_id}",
    response_model=MessageEnvelope,
    summary="Delete a user's profile",
)
async def delete_user(
    user_id: str,
    principal: Principal = Depends(require_principal),
    service: UserService = Depends(get_user_service),
):
    await service.delete(user_id, principal)
    return success_response(message="User profile deleted successfully", include_data=False)
