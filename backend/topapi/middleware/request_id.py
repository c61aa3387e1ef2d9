"""
Topapi Backend: Request ID Middleware
=======================================

What:  Assigns a correlation ID to each request and echoes it back.
How:   Reuses the client's X-Request-ID when sent, otherwise generates a
       short UUID; stores it in a ContextVar for loggers and in
       request.state for handlers.
When:  Outermost application middleware, so every later log line and
       every error envelope shares the same ID.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Accepts a client-provided X-Request-ID or generates an 8-char one."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
