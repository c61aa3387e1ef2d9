"""
Topapi Backend: OpenAPI Document Tests
========================================

What we test:
    ✅ Request bodies reference their pydantic schemas (nested models included)
    ✅ Responses reference the envelope and record models
    ✅ Public operations opt out of the global bearer requirement
    ✅ TopapiError rendering adds details and Retry-After
"""

import pytest

from topapi.exceptions import RateLimitExceededError, ValidationError
from topapi.responses import exception_response


def body_ref(operation):
    return operation["requestBody"]["content"]["application/json"]["schema"]["$ref"]


def response_ref(operation, status):
    return operation["responses"][status]["content"]["application/json"]["schema"]["$ref"]


class TestOpenApiDocument:
    @pytest.mark.asyncio
    async def test_request_bodies(self, client):
        doc = (await client.get("/api-docs.json")).json()
        create = doc["paths"]["/api/inventory"]["post"]
        assert body_ref(create) == "#/components/schemas/InventoryItemCreate"
        schemas = doc["components"]["schemas"]
        assert schemas["InventoryItemCreate"]["properties"]["quantity"]["minimum"] == 0
        signup = doc["paths"]["/api/auth/signup"]["post"]
        assert body_ref(signup) == "#/components/schemas/SignupRequest"
        assert "SignupMetadata" in schemas

    @pytest.mark.asyncio
    async def test_response_models(self, client):
        doc = (await client.get("/api-docs.json")).json()
        inventory = doc["paths"]["/api/inventory"]
        assert "InventoryItemRecord" in response_ref(inventory["get"], "200")
        assert "InventoryItemRecord" in response_ref(inventory["post"], "201")
        delete = doc["paths"]["/api/inventory/{item_id}"]["delete"]
        assert "MessageEnvelope" in response_ref(delete, "200")
        assert "HealthStatus" in response_ref(doc["paths"]["/api/health"]["get"], "200")

    @pytest.mark.asyncio
    async def test_public_operations(self, client):
        doc = (await client.get("/api-docs.json")).json()
        assert doc["security"] == [{"bearerAuth": []}]
        for path in ("/api/auth/login", "/api/auth/refresh", "/api/auth/reset-password"):
            assert doc["paths"][path]["post"]["security"] == []
        assert doc["paths"]["/api/health"]["get"]["security"] == []
        assert doc["paths"]["/api/health/db"]["get"]["security"] == []
        assert "security" not in doc["paths"]["/api/auth/signup"]["post"]


class TestExceptionResponse:
    def test_validation_details(self):
        exc = ValidationError(violations=[{"field": "quantity", "rule": "min", "message": "too small"}])
        response = exception_response(exc)
        assert response.status_code == 400
        assert b'"details"' in response.body

    def test_rate_limit_retry_after(self):
        response = exception_response(
            RateLimitExceededError(retry_after=42), headers={"RateLimit-Limit": "2"}
        )
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.headers["RateLimit-Limit"] == "2"
