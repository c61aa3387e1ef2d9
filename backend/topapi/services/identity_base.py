"""
Topapi Backend: Abstract Identity Provider Interface
======================================================

What:  Abstract base class for the external identity oracle.
Why:   Token verification, account creation and password flows are delegated
       to the hosted auth provider. Coding against this contract lets the
       test suite swap in an in-memory provider.
How:   SupabaseAuthClient implements it over the GoTrue REST API.
Who:   Called by the token verifier, the auth service and the users service.

Contract:
    - User objects are dicts as returned by the provider
      ({"id", "email", "user_metadata", ...}).
    - Sessions are dicts ({"access_token", "refresh_token", "expires_in", ...}).
    - A 4xx answer raises IdentityRejectedError carrying the provider's message.
    - A 5xx answer or a transport failure raises IdentityProviderError.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

IdentityUser = Dict[str, Any]
IdentitySession = Dict[str, Any]


class IdentityProvider(ABC):
    """Identity oracle used for every authentication decision."""

    # ── Token verification ────────────────────────────────────────────────

    @abstractmethod
    async def get_user(self, access_token: str) -> Optional[IdentityUser]:
        """
        Resolve an access token to its user.

        Returns:
            The user object, or None when the provider returned no user.

        Raises:
            IdentityRejectedError: token invalid or expired.
            IdentityProviderError: provider unreachable.
        """
        ...

    # ── Public flows (anon key) ───────────────────────────────────────────

    @abstractmethod
    async def sign_up(
        self, email: str, password: str, metadata: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create an account. Returns {"user": ..., "session": ... or None}."""
        ...

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """Password grant. Returns {"user": ..., "session": ...}."""
        ...

    @abstractmethod
    async def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        """Refresh-token grant. Returns {"user": ..., "session": ...}."""
        ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """Revoke the session the access token belongs to."""
        ...

    @abstractmethod
    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        """Send a recovery email whose link lands on `redirect_to`."""
        ...

    @abstractmethod
    async def update_user(self, access_token: str, attributes: Dict[str, Any]) -> IdentityUser:
        """Update the caller's own account (e.g. password) with their token."""
        ...

    # ── Admin API (service role key) ──────────────────────────────────────

    @property
    @abstractmethod
    def has_admin_access(self) -> bool:
        """True when an admin credential is configured."""
        ...

    @abstractmethod
    async def admin_get_user(self, user_id: str) -> Optional[IdentityUser]:
        ...

    @abstractmethod
    async def admin_update_user(self, user_id: str, attributes: Dict[str, Any]) -> IdentityUser:
        ...

    @abstractmethod
    async def admin_delete_user(self, user_id: str) -> None:
        ...

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight reachability probe.

        Returns: True if the provider answered, False otherwise. Never raises.
        """
        ...

    async def aclose(self) -> None:
        return None
