"""
Topapi Backend: Health Endpoint Tests
=======================================

What we test:
    ✅ /api/health answers without authentication, inside the envelope
    ✅ Identity provider status is reported; an outage still answers 200
    ✅ /api/health/db pings the store
    ✅ Store failure → 503 "Database disconnected"
"""

import pytest

from topapi.exceptions import StoreError


class TestHealth:
    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "ok"
        assert body["data"]["environment"] == "test"
        assert body["data"]["uptime"] >= 0
        assert "timestamp" in body["data"]
        assert body["data"]["identity"] == "available"

    @pytest.mark.asyncio
    async def test_identity_unavailable_is_reported(self, client, identity):
        identity.fail_on["health_check"] = RuntimeError("unreachable")
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["data"]["identity"] == "unavailable"

    @pytest.mark.asyncio
    async def test_database_connected(self, client, store):
        response = await client.get("/api/health/db")
        assert response.status_code == 200
        assert response.json()["data"]["database"] == "connected"
        assert store.calls == [("ping", "")]

    @pytest.mark.asyncio
    async def test_database_disconnected(self, client, store):
        store.fail_on["ping"] = StoreError("connection refused")
        response = await client.get("/api/health/db")
        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error"]["message"] == "Database disconnected"
