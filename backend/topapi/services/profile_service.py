"""
Topapi Backend: Profile and User Services
===========================================

What:  Two views over the `profiles` table.
       ProfileService  → /api/profiles  (optional-auth reads)
       UserService     → /api/users     (authenticated; no create; mirrors
                                          name/role/language into the
                                          identity provider's user metadata)
Policy:
    Writes are self-or-admin. Granting the admin role is admin-only, so a
    staff account cannot promote itself through a patch.
"""

import logging
from typing import Any, Dict

from topapi.exceptions import TopapiError
from topapi.schemas.profile import ProfileCreate, ProfileUpdate
from topapi.services.authorization import require_can_mutate, require_role_assignment
from topapi.services.identity_base import IdentityProvider
from topapi.services.resource_service import ResourceService
from topapi.services.store_base import RecordStore, Row
from topapi.services.token_verifier import Principal

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("name", "role", "language")


class ProfileService(ResourceService):
    table = "profiles"
    key = "user_id"
    label = "Profile"
    not_found_message = "Profile not found"
    invalid_id_message = "Invalid profile ID"
    create_schema = ProfileCreate
    update_schema = ProfileUpdate
    has_updated_at = True

    def authorize_create(self, principal: Principal, values: Dict[str, Any]) -> None:
        require_can_mutate(
            principal, values["user_id"], "Forbidden: You can only create your own profile"
        )
        require_role_assignment(principal, values.get("role"))

    def authorize_update(self, principal: Principal, record_id: str, values: Dict[str, Any]) -> None:
        require_can_mutate(principal, record_id, "Forbidden: You can only update your own profile")
        if "role" in values:
            require_role_assignment(principal, values["role"])

    def authorize_delete(self, principal: Principal, record_id: str) -> None:
        require_can_mutate(principal, record_id, "Forbidden: You can only delete your own profile")


class UserService(ProfileService):
    label = "User profile"
    not_found_message = "User not found"
    invalid_id_message = "Invalid user ID"
    create_schema = None

    def __init__(self, store: RecordStore, identity: IdentityProvider):
        super().__init__(store)
        self.identity = identity

    def authorize_update(self, principal: Principal, record_id: str, values: Dict[str, Any]) -> None:
        require_can_mutate(
            principal,
            record_id,
            "Forbidden: You can only update your own profile or need admin access",
        )
        if "role" in values:
            require_role_assignment(principal, values["role"])

    def authorize_delete(self, principal: Principal, record_id: str) -> None:
        require_can_mutate(
            principal,
            record_id,
            "Forbidden: You can only delete your own profile or need admin access",
        )

    async def after_update(self, record_id: str, changes: Dict[str, Any], row: Row) -> None:
        """
        Mirror profile fields into the account's user_metadata.

        Best effort: the profile row is already updated, so a failure here is
        logged and the request still succeeds. Skipped when no admin
        credential is configured.
        """
        fields = {name: changes[name] for name in METADATA_FIELDS if name in changes}
        if not fields or not self.identity.has_admin_access:
            return

        try:
            current = await self.identity.admin_get_user(record_id) or {}
            metadata = dict(current.get("user_metadata") or {})
            metadata.update(fields)
            await self.identity.admin_update_user(record_id, {"user_metadata": metadata})
        except TopapiError as e:
            logger.error(
                "Failed to update auth metadata for user %s: %s | Context: %s",
                record_id,
                e.message,
                e.context,
            )
