"""
Topapi Backend: Auth Request Schemas
======================================

What:  Request bodies for the /api/auth endpoints.
Why:   Email shape and password length are checked before the identity
       provider is contacted.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from topapi.schemas.common import Email, InputSchema, Language, NonEmptyStr, Password, Role


class SignupMetadata(InputSchema):
    """Profile fields stored both in the account metadata and the profile row."""

    name: Optional[str] = Field(default=None, max_length=200)
    role: Role = "staff"
    language: Language = "en"


class SignupRequest(InputSchema):
    email: Email
    password: Password
    metadata: SignupMetadata = Field(default_factory=SignupMetadata)


class LoginRequest(InputSchema):
    email: Email
    password: NonEmptyStr


class RefreshRequest(InputSchema):
    refresh_token: NonEmptyStr


class ResetPasswordRequest(InputSchema):
    email: Email


class UpdatePasswordRequest(InputSchema):
    """Used by both the self-service and the admin password endpoints."""

    password: Password


class AuthResult(BaseModel):
    """Response payload of signup, login, refresh and me."""

    user: Optional[Dict[str, Any]] = None
    session: Optional[Dict[str, Any]] = None
