# Middleware package init
"""
Topapi Backend: Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Security Headers] → [Request ID] → [Logging] → [Rate Limit] → Route

    - CORS outermost so preflights and rejected requests both carry CORS headers
    - Request ID before Logging so every access line has the correlation ID
    - Rate Limit innermost so 429s are logged and carry X-Request-ID
"""
