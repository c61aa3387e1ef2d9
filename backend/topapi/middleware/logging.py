"""
Topapi Backend: Request Logging Middleware
============================================

What:  One access-log line per HTTP request.
How:   Times the request with perf_counter and logs method, path, status,
       duration, request ID and client address once the response is ready.
Who:   Applied to every request via Starlette middleware.
When:  Inside RequestIDMiddleware (reads the request ID it set).

Log levels by status:
    5xx → ERROR
    4xx → WARNING
    else → INFO

What we DON'T log: request bodies (passwords, PII) and the Authorization
header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from topapi.middleware.request_id import request_id_var

logger = logging.getLogger("topapi.access")

# Probed every few seconds by orchestrators
QUIET_PATHS = {"/api/health", "/api/health/db"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
