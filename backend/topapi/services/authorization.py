"""
Topapi Backend: Authorization Rules
=====================================

What:  Pure decision functions: given a principal and a target owner or role,
       is the action allowed?
Why:   Every resource shares the same two policies (admin-only, self-or-admin).
       Keeping them I/O-free makes them trivially testable.
How:   Roles are canonicalized once by normalize_role(); every comparison
       goes through it. Privileges come from the role alone, never from
       specific account ids.

Roles:      admin, staff
Languages:  en, es
"""

from typing import Any, Optional

from topapi.exceptions import ForbiddenError

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLES = (ROLE_ADMIN, ROLE_STAFF)
LANGUAGES = ("en", "es")


def normalize_role(value: Any) -> Optional[str]:
    """Canonical lowercase role, or None for absent/blank values."""
    if value is None:
        return None
    role = str(value).strip().lower()
    return role or None


def can_act_on_own_resource(principal, owner_id: Any) -> bool:
    if principal is None or owner_id is None:
        return False
    return str(principal.id) == str(owner_id)


def is_admin(principal) -> bool:
    if principal is None:
        return False
    return normalize_role(principal.role) == ROLE_ADMIN


def can_mutate(principal, owner_id: Any) -> bool:
    """Own resource, or admin."""
    return can_act_on_own_resource(principal, owner_id) or is_admin(principal)


# ── Gates ─────────────────────────────────────────────────────────────────


def require_admin(principal) -> None:
    if not is_admin(principal):
        raise ForbiddenError(
            message="Admin access required",
            context={"principal_id": getattr(principal, "id", None)},
        )


def require_can_mutate(
    principal,
    owner_id: Any,
    message: str = "Forbidden: You can only modify your own resources or need admin access",
) -> None:
    if not can_mutate(principal, owner_id):
        raise ForbiddenError(
            message=message,
            context={"principal_id": getattr(principal, "id", None), "owner_id": str(owner_id)},
        )


def require_role_assignment(principal, role: Optional[str]) -> None:
    """Only an admin may grant the admin role."""
    if normalize_role(role) == ROLE_ADMIN and not is_admin(principal):
        raise ForbiddenError(
            message="Forbidden: Only admins can assign the admin role",
            context={"principal_id": getattr(principal, "id", None)},
        )
