"""
Topapi Backend: Hosted Auth Provider Client
=============================================

What:  IdentityProvider implementation over the hosted backend's auth REST
       API (GoTrue-compatible, mounted at {SUPABASE_URL}/auth/v1).
Why:   The provider issues and verifies every bearer token and owns account
       credentials. The API layer never sees a password hash.
How:   One shared httpx.AsyncClient with a fixed timeout. Public calls send
       the anon key; admin calls send the service role key. Responses are
       translated into the error hierarchy:
           4xx            → IdentityRejectedError (provider's own message)
           5xx, transport → IdentityProviderError
Who:   Built once by the service context at startup; closed at shutdown.

Endpoints used:
    GET    /user                          token → user
    PUT    /user                          update own account (password)
    POST   /signup                        create account
    POST   /token?grant_type=password     login
    POST   /token?grant_type=refresh_token
    POST   /logout                        revoke the caller's session
    POST   /recover?redirect_to=...       password recovery email
    GET/PUT/DELETE /admin/users/{id}      admin API
    GET    /health

No retries: a failed call fails the request immediately.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from topapi.exceptions import IdentityProviderError, IdentityRejectedError
from topapi.services.identity_base import IdentityProvider, IdentitySession, IdentityUser

logger = logging.getLogger(__name__)

SESSION_KEYS = ("access_token", "refresh_token", "expires_in", "expires_at", "token_type")


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a provider error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Identity provider returned {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Identity provider returned {response.status_code}"


def _split_session(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Normalize a token/signup answer into {"user": ..., "session": ...}.

    Token grants answer with the session at top level and the user nested.
    Signup answers with a bare user when email confirmation is required.
    """
    payload = payload or {}
    if "access_token" in payload:
        session: IdentitySession = {k: payload[k] for k in SESSION_KEYS if k in payload}
        return {"user": payload.get("user"), "session": session}
    return {"user": payload or None, "session": None}


class SupabaseAuthClient(IdentityProvider):
    """
    Async client for the hosted auth provider.

    Args:
        base_url:          Project URL (SUPABASE_URL); /auth/v1 is appended.
        anon_key:          Public key for token verification and public flows.
        service_role_key:  Admin key. Without it the admin API is unavailable.
        timeout:           Per-request timeout in seconds.
        transport:         Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._anon_key = anon_key
        self._service_role_key = service_role_key
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/auth/v1",
            timeout=timeout,
            transport=transport,
        )

    @property
    def has_admin_access(self) -> bool:
        return bool(self._service_role_key)

    # ── Transport ─────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        admin: bool = False,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if admin and not self._service_role_key:
            raise IdentityProviderError(
                message="Admin credential is not configured",
                context={"path": path},
            )
        key = self._service_role_key if admin else self._anon_key
        headers = {
            "apikey": key or "",
            "Authorization": f"Bearer {token or key}",
        }

        try:
            response = await self._client.request(
                method, path, headers=headers, json=json, params=params
            )
        except httpx.HTTPError as e:
            logger.error("Identity provider %s %s failed: %s", method, path, str(e))
            raise IdentityProviderError(
                message="Identity provider unreachable",
                context={"path": path, "error_type": type(e).__name__},
            ) from e

        if response.status_code >= 500:
            logger.error(
                "Identity provider %s %s answered %d", method, path, response.status_code
            )
            raise IdentityProviderError(
                message=_error_message(response),
                context={"path": path, "provider_status": response.status_code},
            )
        if response.status_code >= 400:
            raise IdentityRejectedError(
                message=_error_message(response),
                provider_status=response.status_code,
                context={"path": path},
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ── Token verification ────────────────────────────────────────────────

    async def get_user(self, access_token: str) -> Optional[IdentityUser]:
        user = await self._request("GET", "/user", token=access_token)
        if not isinstance(user, dict) or not user.get("id"):
            return None
        return user

    # ── Public flows ──────────────────────────────────────────────────────

    async def sign_up(
        self, email: str, password: str, metadata: Dict[str, Any]
    ) -> Dict[str, Any]:
        payload = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata},
        )
        return _split_session(payload)

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        payload = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return _split_session(payload)

    async def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        payload = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return _split_session(payload)

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", token=access_token)

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        await self._request(
            "POST",
            "/recover",
            params={"redirect_to": redirect_to},
            json={"email": email},
        )

    async def update_user(self, access_token: str, attributes: Dict[str, Any]) -> IdentityUser:
        return await self._request("PUT", "/user", token=access_token, json=attributes)

    # ── Admin API ─────────────────────────────────────────────────────────

    async def admin_get_user(self, user_id: str) -> Optional[IdentityUser]:
        user = await self._request("GET", f"/admin/users/{user_id}", admin=True)
        return user if isinstance(user, dict) and user.get("id") else None

    async def admin_update_user(self, user_id: str, attributes: Dict[str, Any]) -> IdentityUser:
        return await self._request(
            "PUT", f"/admin/users/{user_id}", admin=True, json=attributes
        )

    async def admin_delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/admin/users/{user_id}", admin=True)
        logger.info("Deleted identity account %s", user_id)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def health_check(self) -> bool:
        try:
            await self._request("GET", "/health")
            return True
        except (IdentityProviderError, IdentityRejectedError) as e:
            logger.warning("Identity provider health check failed: %s", e.message)
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
