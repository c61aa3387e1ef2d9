"""
Topapi Backend: Rate Limiting Middleware
==========================================

What:  Applies the context's FixedWindowRateLimiter to every /api/ request.
How:   Keys on the client address. With TRUST_PROXY enabled the address is
       the last X-Forwarded-For hop (exactly one trusted proxy in front).
When:  Innermost application middleware, so rejected requests still get a
       request ID and an access-log line.

Response headers (draft IETF RateLimit fields):
    RateLimit-Limit      requests allowed per window
    RateLimit-Remaining  requests left in the current window
    RateLimit-Reset      seconds until the window resets
    Retry-After          only on 429

Production Upgrade Path:
    The limiter state lives in the process. See services/rate_limiter.py.
"""

import logging
from typing import Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from topapi.exceptions import RateLimitExceededError
from topapi.responses import exception_response
from topapi.services.rate_limiter import RateLimitDecision

logger = logging.getLogger(__name__)

LIMITED_PREFIX = "/api/"


def client_address(request: Request, trust_proxy: bool) -> str:
    """Resolve the address a request is counted against."""
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For", "")
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if hops:
            return hops[-1]
    return getattr(request.client, "host", "unknown") if request.client else "unknown"


def rate_limit_headers(decision: RateLimitDecision) -> Dict[str, str]:
    return {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(decision.reset_after),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not request.url.path.startswith(LIMITED_PREFIX):
            return await call_next(request)

        context = getattr(request.app.state, "context", None)
        if context is None:
            return await call_next(request)

        client_ip = client_address(request, context.settings.trust_proxy)
        decision = context.rate_limiter.hit(client_ip)
        headers = rate_limit_headers(decision)

        if not decision.allowed:
            exc = RateLimitExceededError(
                retry_after=decision.reset_after,
                context={"client_ip": client_ip, "path": request.url.path},
            )
            logger.warning(
                "Rate limit exceeded for %s on %s %s (limit %d per %ds)",
                client_ip,
                request.method,
                request.url.path,
                decision.limit,
                context.rate_limiter.window,
            )
            return exception_response(exc, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
