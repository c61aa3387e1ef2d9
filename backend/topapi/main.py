"""
Topapi Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn topapi.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain (outermost first):                         │
    │  CORS → Security Headers → GZip → Req ID → Logging → Limit   │
    │                                                              │
    │  Routes (/api/...):                                          │
    │  auth · users · profiles · inventory · categories            │
    │  departments · activity-log · health                         │
    │                                                              │
    │  Exception Handlers:                                         │
    │  TopapiError → its status │ RequestValidationError → 400     │
    │  HTTPException → envelope │ Exception → 500                  │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Report missing production configuration (logged, not fatal)
    3. Build the ServiceContext unless one was injected
    Shutdown:
    1. Close the identity HTTP client and dispose the database engine
       (only for a context the lifespan built itself)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.exceptions import HTTPException as StarletteHTTPException

from topapi import __version__
from topapi.config import Settings
from topapi.config import settings as default_settings
from topapi.context import ServiceContext, build_service_context
from topapi.exceptions import TopapiError
from topapi.middleware.logging import RequestLoggingMiddleware
from topapi.middleware.rate_limit import RateLimitMiddleware
from topapi.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from topapi.middleware.security_headers import SecurityHeadersMiddleware
from topapi.responses import error_response, exception_response
from topapi.routes import (
    activity_log,
    auth,
    categories,
    departments,
    health,
    inventory,
    profiles,
    users,
)
from topapi.schemas.common import request_schema_components
from topapi.validation import violations_from_errors

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] topapi.access: GET /api/inventory 200 ...

    Production upgrade:
        Swap the StreamHandler for python-json-logger when logs are shipped
        to an aggregator.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

def build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # ── Startup ───────────────────────────────────────────────────────
        setup_logging(settings.log_level)
        logger.info("=" * 60)
        logger.info("Topapi Backend starting up (%s)...", settings.environment)

        try:
            settings.validate_required_for_production()
        except ValueError as e:
            # Not fatal: health checks stay reachable and report the problem
            logger.error("Configuration error: %s", str(e))
            logger.error("Fix the configuration and restart the server.")

        owns_context = app.state.context is None
        if owns_context:
            app.state.context = build_service_context(settings)

        logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
        logger.info("API docs: http://%s:%d/api-docs", settings.backend_host, settings.backend_port)
        logger.info("=" * 60)

        yield

        # ── Shutdown ──────────────────────────────────────────────────────
        logger.info("Topapi Backend shutting down...")
        if owns_context:
            await app.state.context.aclose()
            app.state.context = None
        logger.info("Shutdown complete.")

    return lifespan


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Map every failure onto the error envelope.

    Handler hierarchy:
        TopapiError             → exc.status_code (400/401/403/404/429/500/503)
        RequestValidationError  → 400 "Validation failed" (malformed JSON, bad params)
        HTTPException           → its status; 404 becomes "Route <path> not found"
        Exception (fallback)    → 500 "Internal server error"

    Security: a 500 never carries the underlying message. The stack trace
    is attached only in development; it is always logged server-side.
    """
    include_stack = settings.is_development

    @app.exception_handler(TopapiError)
    async def handle_topapi_error(request: Request, exc: TopapiError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s %s failed: %s | Context: %s",
                rid,
                request.method,
                request.url.path,
                exc.message,
                exc.context,
                exc_info=exc,
            )
        else:
            logger.warning(
                "[%s] %s %s → %d: %s",
                rid,
                request.method,
                request.url.path,
                exc.status_code,
                exc.message,
            )

        return exception_response(exc, include_stack=include_stack)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        violations = [v.as_dict() for v in violations_from_errors(exc.errors(), skip_prefix=1)]
        logger.warning(
            "[%s] Request validation failed on %s: %s",
            request_id_var.get(""),
            request.url.path,
            violations,
        )
        return error_response(400, "Validation failed", details=violations)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = f"Route {request.url.path} not found"
        else:
            message = str(exc.detail)
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error on %s %s: %s",
            request_id_var.get(""),
            request.method,
            request.url.path,
            str(exc),
            exc_info=exc,
        )
        return error_response(500, str(exc), exc=exc, include_stack=include_stack)


# ══════════════════════════════════════════════════════════════════════════
# OpenAPI
# ══════════════════════════════════════════════════════════════════════════

def install_openapi(app: FastAPI) -> None:
    """
    Publish the bearer scheme the Authorization header expects, plus the
    request body schemas registered by the routes. Operations marked with
    PUBLIC_OPERATION override the global security requirement.
    """

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        components = schema.setdefault("components", {})
        components["securitySchemes"] = {
            "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        }
        component_schemas = components.setdefault("schemas", {})
        for name, definition in request_schema_components().items():
            component_schemas.setdefault(name, definition)
        schema["security"] = [{"bearerAuth": []}]
        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    context: Optional[ServiceContext] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Defaults to the process-wide settings loaded from the environment
        context:  A prebuilt ServiceContext (tests). When omitted, the
                  lifespan builds one at startup and closes it at shutdown.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Topapi Inventory API",
        description=(
            "Restaurant inventory management: stock items, categories, departments, "
            "user profiles and an activity log, behind hosted authentication."
        ),
        version=__version__,
        docs_url="/api-docs",
        redoc_url=None,
        openapi_url="/api-docs.json",
        lifespan=build_lifespan(settings),
    )
    app.state.settings = settings
    app.state.context = context

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first.
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            REQUEST_ID_HEADER,
            "Retry-After",
            "RateLimit-Limit",
            "RateLimit-Remaining",
            "RateLimit-Reset",
        ],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app, settings)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(profiles.router)
    app.include_router(inventory.router)
    app.include_router(categories.router)
    app.include_router(departments.router)
    app.include_router(activity_log.router)
    app.include_router(health.router)

    install_openapi(app)
    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `topapi.main:app` to be importable
app = create_app()
