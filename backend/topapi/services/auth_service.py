"""
Topapi Backend: Auth Service
==============================

What:  Account flows delegated to the identity provider: signup, login,
       refresh, logout, password recovery and password changes.
Why:   The provider owns credentials and sessions; this service adds
       validation, the admin gates and the signup/profile pairing.

Signup Flow (the only two-step write in the API):
    ┌──────────┐    ┌───────────────┐    ┌──────────────┐
    │ Validate │───▶│ Create account│───▶│Insert profile│───▶ 201 {user, session}
    └──────────┘    │ (provider)    │    │ (store)      │
                    └───────────────┘    └──────┬───────┘
                                                │ fails
                                                ▼
                                  Delete account (provider admin API)
                                  → DependencyError (500)

    There is no cross-service transaction, so the compensating delete is
    what keeps accounts and profiles 1:1.
"""

import logging
from typing import Any, Dict

from topapi.exceptions import (
    AuthenticationError,
    DependencyError,
    IdentityProviderError,
    IdentityRejectedError,
    TopapiError,
)
from topapi.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdatePasswordRequest,
)
from topapi.services.authorization import require_admin
from topapi.services.identity_base import IdentityProvider
from topapi.services.store_base import RecordStore
from topapi.services.token_verifier import Principal
from topapi.validation import validate_identifier, validate_payload

logger = logging.getLogger(__name__)

PROFILE_ROLLBACK_MESSAGE = "Failed to create user profile. User account has been cleaned up."


class AuthService:
    """
    Args:
        identity: Identity provider client
        store:    Record store (for the paired profile row)
        app_url:  Frontend base URL; recovery emails land on {app_url}/reset-password
    """

    def __init__(self, identity: IdentityProvider, store: RecordStore, app_url: str):
        self.identity = identity
        self.store = store
        self.app_url = app_url.rstrip("/")

    async def signup(self, payload: Any, principal: Principal) -> Dict[str, Any]:
        values = validate_payload(SignupRequest, payload)
        require_admin(principal)

        metadata = values["metadata"]
        result = await self.identity.sign_up(values["email"], values["password"], metadata)
        user = result.get("user") or {}
        if not user.get("id"):
            raise IdentityProviderError(
                message="Identity provider returned no user",
                context={"email": values["email"]},
            )

        try:
            await self.store.insert(
                "profiles",
                {
                    "user_id": user["id"],
                    "name": metadata.get("name"),
                    "role": metadata["role"],
                    "language": metadata["language"],
                },
            )
        except TopapiError as e:
            logger.error("Failed to create profile for %s: %s", user["id"], e.message)
            await self._delete_orphaned_account(user["id"])
            raise DependencyError(
                message=PROFILE_ROLLBACK_MESSAGE,
                context={"user_id": user["id"], "cause": e.message},
            ) from e

        logger.info("User %s registered by admin %s", user["id"], principal.id)
        return {"user": user, "session": result.get("session")}

    async def _delete_orphaned_account(self, user_id: str) -> None:
        try:
            await self.identity.admin_delete_user(user_id)
        except TopapiError as e:
            logger.critical(
                "Could not delete account %s after profile failure; it has no profile: %s",
                user_id,
                e.message,
            )
            raise DependencyError(
                message="Failed to create user profile and to clean up the account",
                context={"user_id": user_id, "cause": e.message},
            ) from e
        logger.warning("Rolled back account %s after profile failure", user_id)

    async def login(self, payload: Any) -> Dict[str, Any]:
        values = validate_payload(LoginRequest, payload)
        try:
            result = await self.identity.sign_in_with_password(values["email"], values["password"])
        except IdentityRejectedError as e:
            raise AuthenticationError(e.message) from e
        return {"user": result.get("user"), "session": result.get("session")}

    async def refresh(self, payload: Any) -> Dict[str, Any]:
        values = validate_payload(RefreshRequest, payload)
        try:
            result = await self.identity.refresh_session(values["refresh_token"])
        except IdentityRejectedError as e:
            raise AuthenticationError(e.message) from e
        return {"session": result.get("session")}

    def me(self, principal: Principal) -> Dict[str, Any]:
        return {"user": principal.claims}

    async def logout(self, principal: Principal) -> None:
        await self.identity.sign_out(principal.access_token)

    async def reset_password(self, payload: Any) -> None:
        values = validate_payload(ResetPasswordRequest, payload)
        await self.identity.reset_password_for_email(
            values["email"], f"{self.app_url}/reset-password"
        )

    async def update_password(self, payload: Any, principal: Principal) -> None:
        values = validate_payload(UpdatePasswordRequest, payload)
        await self.identity.update_user(principal.access_token, {"password": values["password"]})

    async def admin_reset_password(self, user_id: Any, payload: Any, principal: Principal) -> None:
        user_id = validate_identifier(user_id, "Invalid user ID", field="userId")
        values = validate_payload(UpdatePasswordRequest, payload)
        require_admin(principal)
        await self.identity.admin_update_user(user_id, {"password": values["password"]})
        logger.info("Password for %s reset by admin %s", user_id, principal.id)
