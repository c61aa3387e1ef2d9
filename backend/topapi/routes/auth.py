"""
Topapi Backend: Auth Route Handlers
=====================================

What:  /api/auth: account flows backed by the identity provider.

Route Inventory:
    POST /signup                        admin only; creates account + profile
    POST /login                         password grant (401 on bad credentials)
    POST /refresh                       refresh-token grant (401 on rejection)
    GET  /me                            the verified caller's user object
    POST /logout                        revokes the caller's session
    POST /reset-password                sends a recovery email
    POST /update-password               changes the caller's password
    POST /admin/reset-password/{userId} admin only
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from topapi.dependencies import get_auth_service, require_principal
from topapi.responses import success_response
from topapi.schemas.auth import (
    AuthResult,
    LoginRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdatePasswordRequest,
)
from topapi.schemas.common import ERROR_RESPONSES, Envelope, MessageEnvelope, request_body
from topapi.services.auth_service import AuthService
from topapi.services.token_verifier import Principal

router = APIRouter(prefix="/api/auth", tags=["Authentication"], responses=ERROR_RESPONSES)


@router.post(
    "/signup",
    response_model=Envelope[AuthResult],
    openapi_extra=request_body(SignupRequest),
    status_code=201,
    summary="Register a new user (admin)",
)
async def signup(
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.signup(payload, principal)
    return success_response(result, message="User registered successfully", status_code=201)


@router.post(
    "/login",
    response_model=Envelope[AuthResult],
    openapi_extra=request_body(LoginRequest, public=True),
    summary="Log in with email and password",
)
async def login(
    payload: Any = Body(default=None),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.login(payload)
    return success_response(result, message="Login successful")


@router.post(
    "/refresh",
    response_model=Envelope[AuthResult],
    openapi_extra=request_body(RefreshRequest, public=True),
    summary="Exchange a refresh token for a new session",
)
async def refresh(
    payload: Any = Body(default=None),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.refresh(payload)
    return success_response(result, message="Token refreshed successfully")


@router.get("/me", response_model=Envelope[AuthResult], summary="Current user")
async def me(
    principal: Principal = Depends(require_principal),
    service: AuthService = Depends(get_auth_service),
):
    return success_response(service.me(principal))


@router.post("/logout", response_model=MessageEnvelope, summary="Log out")
async def logout(
    principal: Principal = Depends(require_principal),
    service: AuthService = Depends(get_auth_service),
):
    await service.logout(principal)
    return success_response(message="Logout successful", include_data=False)


@router.post(
    "/reset-password",
    response_model=MessageEnvelope,
    openapi_extra=request_body(ResetPasswordRequest, public=True),
    summary="Send a password recovery email",
)
async def reset_password(
    payload: Any = Body(default=None),
    service: AuthService = Depends(get_auth_service),
):
    await service.reset_password(payload)
    return success_response(message="Password reset email sent", include_data=False)


@router.post(
    "/update-password",
    response_model=MessageEnvelope,
    openapi_extra=request_body(UpdatePasswordRequest),
    summary="Change the caller's password",
)
async def update_password(
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: AuthService = Depends(get_auth_service),
):
    await service.update_password(payload, principal)
    return success_response(message="Password updated successfully", include_data=False)


@router.post(
    "/admin/reset-password/{user_id}",
    response_model=MessageEnvelope,
    openapi_extra=request_body(UpdatePasswordRequest),
    summary="Set another user's password (admin)",
)
async def admin_reset_password(
    user_id: str,
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: AuthService = Depends(get_auth_service),
):
    await service.admin_reset_password(user_id, payload, principal)
    return success_response(message="Password reset successfully", include_data=False)
