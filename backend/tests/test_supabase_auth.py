"""
Topapi Backend: Hosted Auth Client Tests
==========================================

What:  Exercises SupabaseAuthClient against httpx.MockTransport.
Why:   Pins the wire contract (paths, keys, bodies) and the translation of
       provider answers into the error hierarchy, with no network access.

What we test:
    ✅ Token verification sends the anon key and the user's token
    ✅ 4xx → IdentityRejectedError with the provider's message
    ✅ 5xx and transport errors → IdentityProviderError
    ✅ Token grants split into {"user", "session"}
    ✅ Admin calls use the service role key, and fail without one
"""

import json

import httpx
import pytest

from topapi.exceptions import IdentityProviderError, IdentityRejectedError
from topapi.services.supabase_auth import SupabaseAuthClient

from conftest import STAFF_ID

USER = {"id": STAFF_ID, "email": "staff@example.com", "user_metadata": {"role": "staff"}}
TOKEN_ANSWER = {
    "access_token": "new-access",
    "refresh_token": "new-refresh",
    "expires_in": 3600,
    "token_type": "bearer",
    "user": USER,
}


class Recorder:
    """MockTransport handler that records requests and replays canned answers."""

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.responses.get((request.method, request.url.path))
        if answer is None:
            return httpx.Response(404, json={"msg": "no route"})
        if isinstance(answer, Exception):
            raise answer
        status, body = answer
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(responses, service_role_key="service-key"):
    recorder = Recorder(responses)
    client = SupabaseAuthClient(
        base_url="http://identity.test/",
        anon_key="anon-key",
        service_role_key=service_role_key,
        transport=httpx.MockTransport(recorder),
    )
    return client, recorder


class TestTokenVerification:
    @pytest.mark.asyncio
    async def test_get_user(self):
        client, recorder = make_client({("GET", "/auth/v1/user"): (200, USER)})
        assert await client.get_user("user-token") == USER
        assert recorder.last.headers["apikey"] == "anon-key"
        assert recorder.last.headers["Authorization"] == "Bearer user-token"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        client, _ = make_client({("GET", "/auth/v1/user"): (401, {"msg": "invalid JWT"})})
        with pytest.raises(IdentityRejectedError) as exc_info:
            await client.get_user("bad")
        assert exc_info.value.message == "invalid JWT"
        assert exc_info.value.provider_status == 401
        await client.aclose()

    @pytest.mark.asyncio
    async def test_user_without_id_is_none(self):
        client, _ = make_client({("GET", "/auth/v1/user"): (200, {})})
        assert await client.get_user("token") is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_server_error(self):
        client, _ = make_client({("GET", "/auth/v1/user"): (503, {"message": "upstream down"})})
        with pytest.raises(IdentityProviderError) as exc_info:
            await client.get_user("token")
        assert exc_info.value.status_code == 500
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        client, _ = make_client({
            ("GET", "/auth/v1/user"): httpx.ConnectError("connection refused"),
        })
        with pytest.raises(IdentityProviderError) as exc_info:
            await client.get_user("token")
        assert exc_info.value.message == "Identity provider unreachable"
        await client.aclose()


class TestPublicFlows:
    @pytest.mark.asyncio
    async def test_sign_up_sends_metadata(self):
        client, recorder = make_client({("POST", "/auth/v1/signup"): (200, TOKEN_ANSWER)})
        result = await client.sign_up("staff@example.com", "secret123", {"role": "staff"})
        body = json.loads(recorder.last.content)
        assert body == {"email": "staff@example.com", "password": "secret123", "data": {"role": "staff"}}
        assert result["user"] == USER
        assert result["session"]["access_token"] == "new-access"
        assert "user" not in result["session"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_sign_up_pending_confirmation(self):
        client, _ = make_client({("POST", "/auth/v1/signup"): (200, USER)})
        result = await client.sign_up("staff@example.com", "secret123", {})
        assert result == {"user": USER, "session": None}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_password_grant(self):
        client, recorder = make_client({("POST", "/auth/v1/token"): (200, TOKEN_ANSWER)})
        result = await client.sign_in_with_password("staff@example.com", "secret123")
        assert recorder.last.url.params["grant_type"] == "password"
        assert result["session"]["refresh_token"] == "new-refresh"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_bad_credentials_message(self):
        client, _ = make_client({
            ("POST", "/auth/v1/token"): (400, {"error": "invalid_grant", "error_description": "Invalid login credentials"}),
        })
        with pytest.raises(IdentityRejectedError) as exc_info:
            await client.sign_in_with_password("staff@example.com", "wrong")
        assert exc_info.value.message == "Invalid login credentials"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_refresh_grant(self):
        client, recorder = make_client({("POST", "/auth/v1/token"): (200, TOKEN_ANSWER)})
        await client.refresh_session("old-refresh")
        assert recorder.last.url.params["grant_type"] == "refresh_token"
        assert json.loads(recorder.last.content) == {"refresh_token": "old-refresh"}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_logout_uses_user_token(self):
        client, recorder = make_client({("POST", "/auth/v1/logout"): (204, None)})
        assert await client.sign_out("user-token") is None
        assert recorder.last.headers["Authorization"] == "Bearer user-token"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_recover_redirect(self):
        client, recorder = make_client({("POST", "/auth/v1/recover"): (200, {})})
        await client.reset_password_for_email("staff@example.com", "http://app.test/reset-password")
        assert recorder.last.url.params["redirect_to"] == "http://app.test/reset-password"
        await client.aclose()


class TestAdminApi:
    @pytest.mark.asyncio
    async def test_admin_calls_use_service_role_key(self):
        path = f"/auth/v1/admin/users/{STAFF_ID}"
        client, recorder = make_client({("DELETE", path): (200, {})})
        await client.admin_delete_user(STAFF_ID)
        assert recorder.last.headers["apikey"] == "service-key"
        assert recorder.last.headers["Authorization"] == "Bearer service-key"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_admin_update(self):
        path = f"/auth/v1/admin/users/{STAFF_ID}"
        client, recorder = make_client({("PUT", path): (200, USER)})
        await client.admin_update_user(STAFF_ID, {"password": "newsecret"})
        assert json.loads(recorder.last.content) == {"password": "newsecret"}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_admin_requires_credential(self):
        client, recorder = make_client({}, service_role_key=None)
        assert client.has_admin_access is False
        with pytest.raises(IdentityProviderError):
            await client.admin_get_user(STAFF_ID)
        assert recorder.requests == []
        await client.aclose()


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self):
        client, _ = make_client({("GET", "/auth/v1/health"): (200, {"version": "v2"})})
        assert await client.health_check() is True
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unhealthy_never_raises(self):
        client, _ = make_client({("GET", "/auth/v1/health"): (500, {"msg": "down"})})
        assert await client.health_check() is False
        await client.aclose()
