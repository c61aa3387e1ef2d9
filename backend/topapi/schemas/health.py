"""
Topapi Backend: Health Response Schemas
=========================================

What:  Payloads of /api/health and /api/health/db, as documented in OpenAPI.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    status: Literal["ok"] = "ok"
    timestamp: datetime
    uptime: float = Field(description="Seconds since the process started")
    environment: str
    identity: Literal["available", "unavailable"] = Field(
        description="Whether the identity provider answered its health endpoint"
    )


class DatabaseHealth(BaseModel):
    status: Literal["ok"] = "ok"
    database: Literal["connected"] = "connected"
    timestamp: datetime
