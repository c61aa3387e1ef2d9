"""
Topapi Backend: Middleware Tests
==================================

What we test:
    ✅ X-Request-ID is echoed when sent and generated when not
    ✅ Security headers on every response
    ✅ RateLimit-* headers on /api/ responses
    ✅ Requests over the limit → 429 envelope with Retry-After
    ✅ The last X-Forwarded-For hop is the rate limit key
    ✅ Paths outside /api/ are not counted
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from topapi.context import ServiceContext
from topapi.main import create_app


@pytest_asyncio.fixture
async def limited_client(settings, store, identity):
    """Client for an app that allows two requests per window."""
    tight = settings.model_copy(update={"rate_limit_requests": 2, "trust_proxy": True})
    app = create_app(settings=tight, context=ServiceContext.create(tight, store, identity))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


class TestRequestId:
    @pytest.mark.asyncio
    async def test_echoes_client_id(self, client):
        response = await client.get("/api/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_generates_id(self, client):
        response = await client.get("/api/health")
        assert len(response.headers["X-Request-ID"]) == 8


class TestSecurityHeaders:
    @pytest.mark.asyncio
    async def test_headers_present(self, client):
        response = await client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert "Content-Security-Policy" in response.headers

    @pytest.mark.asyncio
    async def test_headers_on_errors(self, client):
        response = await client.get("/api/nowhere")
        assert response.status_code == 404
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_headers_on_api_responses(self, client):
        response = await client.get("/api/health")
        assert response.headers["RateLimit-Limit"] == "1000"
        assert response.headers["RateLimit-Remaining"] == "999"
        assert int(response.headers["RateLimit-Reset"]) > 0

    @pytest.mark.asyncio
    async def test_over_limit(self, limited_client):
        for _ in range(2):
            assert (await limited_client.get("/api/health")).status_code == 200
        response = await limited_client.get("/api/health")
        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["error"]["message"] == "Too many requests from this IP, please try again later."
        assert "timestamp" in body
        assert int(response.headers["Retry-After"]) > 0
        assert response.headers["RateLimit-Remaining"] == "0"

    @pytest.mark.asyncio
    async def test_forwarded_for_last_hop(self, limited_client):
        for _ in range(2):
            await limited_client.get("/api/health", headers={"X-Forwarded-For": "1.1.1.1, 10.0.0.1"})
        blocked = await limited_client.get(
            "/api/health", headers={"X-Forwarded-For": "2.2.2.2, 10.0.0.1"}
        )
        assert blocked.status_code == 429
        allowed = await limited_client.get(
            "/api/health", headers={"X-Forwarded-For": "10.0.0.1, 10.0.0.2"}
        )
        assert allowed.status_code == 200

    @pytest.mark.asyncio
    async def test_non_api_paths_not_counted(self, limited_client):
        for _ in range(3):
            response = await limited_client.get("/api-docs.json")
            assert response.status_code == 200
            assert "RateLimit-Limit" not in response.headers
        assert (await limited_client.get("/api/health")).status_code == 200
