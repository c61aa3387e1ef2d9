"""
Topapi Backend: Profile Route Handlers
========================================

What:  /api/profiles, keyed by user_id.
Access:
    GET                 optional auth (anonymous callers may read)
    POST/PATCH/DELETE   the profile's owner, or an admin
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from topapi.dependencies import get_page, get_profile_service, optional_principal, require_principal
from topapi.pagination import PageRequest
from topapi.responses import success_response
from topapi.schemas.common import (
    ERROR_RESPONSES,
    Envelope,
    MessageEnvelope,
    PageEnvelope,
    request_body,
)
from topapi.schemas.profile import ProfileCreate, ProfileRecord, ProfileUpdate
from topapi.services.profile_service import ProfileService
from topapi.services.token_verifier import Principal

router = APIRouter(prefix="/api/profiles", tags=["Profiles"], responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=PageEnvelope[ProfileRecord],
    summary="List profiles",
)
async def list_profiles(
    page: PageRequest = Depends(get_page),
    principal: Optional[Principal] = Depends(optional_principal),
    service: ProfileService = Depends(get_profile_service),
):
    rows, pagination = await service.list(page, None, principal)
    return success_response(rows, pagination=pagination)


@router.get(
    "/{user_id}",
    response_model=Envelope[ProfileRecord],
    summary="Get a profile",
)
async def get_profile(
    user_id: str,
    principal: Optional[Principal] = Depends(optional_principal),
    service: ProfileService = Depends(get_profile_service),
):
    return success_response(await service.get(user_id, principal))


@router.post(
    "",
    response_model=Envelope[ProfileRecord],
    openapi_extra=request_body(ProfileCreate),
    status_code=201,
    summary="Create a profile",
)
async def create_profile(
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: ProfileService = Depends(get_profile_service),
):
    row = await service.create(payload, principal)
    return success_response(row, message="Profile created successfully", status_code=201)


@router.patch(
    "/{user_id}",
    response_model=Envelope[ProfileRecord],
    openapi_extra=request_body(ProfileUpdate),
    summary="Update a profile",
)
async def update_profile(
    user_id: str,
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: ProfileService = Depends(get_profile_service),
):
    row = await service.update(user_id, payload, principal)
    return success_response(row, message="Profile updated successfully")


@router.delete(
    "/{user_id}",
    response_model=MessageEnvelope,
    summary="Delete a profile",
)
async def delete_profile(
    user_id: str,
    principal: Principal = Depends(require_principal),
    service: ProfileService = Depends(get_profile_service),
):
    await service.delete(user_id, principal)
    return success_response(message="Profile deleted successfully", include_data=False)
