"""
Topapi Backend: Health Check Routes
=====================================

What:  Liveness and database readiness probes.
Who:   Docker health checks, load balancers and uptime monitors.

    GET /api/health     process is up: {status, timestamp, uptime, environment,
                        identity}; an identity outage is reported, still 200
    GET /api/health/db  record store answers a trivial query; 503 otherwise
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from topapi.context import ServiceContext
from topapi.dependencies import get_context
from topapi.exceptions import ServiceUnavailableError, StoreError
from topapi.responses import success_response
from topapi.schemas.common import PUBLIC_OPERATION, Envelope, ErrorEnvelope
from topapi.schemas.health import DatabaseHealth, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health", tags=["Health"])

# Module-level: set once at import, reported as process uptime
_start_time = time.monotonic()


def uptime_seconds() -> float:
    return round(time.monotonic() - _start_time, 2)


@router.get(
    "",
    response_model=Envelope[HealthStatus],
    openapi_extra=PUBLIC_OPERATION,
    summary="Service liveness",
)
async def health_check(context: ServiceContext = Depends(get_context)):
    identity_ok = await context.identity.health_check()
    return success_response(
        {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": uptime_seconds(),
            "environment": context.settings.environment,
            "identity": "available" if identity_ok else "unavailable",
        }
    )


@router.get(
    "/db",
    response_model=Envelope[DatabaseHealth],
    responses={503: {"description": "Database unreachable", "model": ErrorEnvelope}},
    openapi_extra=PUBLIC_OPERATION,
    summary="Database connectivity",
)
async def database_health(context: ServiceContext = Depends(get_context)):
    try:
        await context.store.ping()
    except StoreError as e:
        logger.warning("Health check: database unreachable: %s", e.message)
        raise ServiceUnavailableError("Database disconnected") from e

    return success_response(
        {
            "status": "ok",
            "database": "connected",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
