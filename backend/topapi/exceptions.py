"""
Topapi Backend: Custom Exception Hierarchy
============================================

What:  Defines the typed failures raised anywhere in the request pipeline.
Why:   Every failure carries its own HTTP status code and a client-safe message,
       so the exception handlers in main.py can build the failure envelope
       without knowing which component raised it.
How:   Each exception class carries a message, a status code and an optional
       context dict. Context is logged server-side and never returned.
Who:   Raised by the token verifier, authorization rules, validation layer,
       resource services, record store and identity client.
When:  During request processing; short-circuits the remaining stages.

Exception Hierarchy:
    TopapiError (base, 500)
    ├── AuthenticationError        → 401 Unauthorized
    ├── ForbiddenError             → 403 Forbidden
    ├── BadRequestError            → 400 Bad Request
    │   ├── ValidationError        → 400 (carries the violation list)
    │   └── IdentityRejectedError  → 400 (identity provider said no)
    ├── NotFoundError              → 404 Not Found
    ├── RateLimitExceededError     → 429 Too Many Requests
    ├── DependencyError            → 500 Internal Server Error
    │   ├── StoreError             → 500 (record store failed)
    │   └── IdentityProviderError  → 500 (identity provider unreachable)
    └── ServiceUnavailableError    → 503 Service Unavailable
"""

from typing import Any, Dict, List, Optional


class TopapiError(Exception):
    """
    Base exception for all Topapi application errors.

    Attributes:
        message:      Client-facing description (genericized for 500s by the handler)
        status_code:  HTTP status the failure maps to
        context:      Debug info for the logs, never serialized to the client
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationError(TopapiError):
    """
    The request carries no usable bearer token, or the identity provider
    refused it.

    HTTP: 401 Unauthorized
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(TopapiError):
    """
    The principal is authenticated but not allowed to perform the action.

    HTTP: 403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BadRequestError(TopapiError):
    """Client error that is not a field-level validation failure."""

    status_code = 400

    def __init__(
        self,
        message: str = "Bad request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(BadRequestError):
    """
    Raised when client input fails validation.

    What:    The request body, path or query parameters broke a field rule.
    When:    Before any authorization decision or store call.
    HTTP:    400 Bad Request

    The violation list is serialized into the failure envelope as
    ``error.details`` so clients can point at the offending fields.

    Example response:
        {
            "success": false,
            "error": {
                "message": "Validation failed",
                "details": [{"field": "quantity", "rule": "min", "message": "..."}]
            },
            "timestamp": "2024-01-15T12:00:00+00:00"
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        violations: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.violations = violations or []


class IdentityRejectedError(BadRequestError):
    """
    The identity provider answered with a 4xx for a well-formed request.

    Examples: "User already registered", "Invalid login credentials".
    Callers that need a different status (login, refresh) re-raise it as
    an AuthenticationError.
    """

    def __init__(
        self,
        message: str = "Request rejected by the identity provider",
        provider_status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if provider_status is not None:
            ctx["provider_status"] = provider_status
        super().__init__(message=message, context=ctx)
        self.provider_status = provider_status


class NotFoundError(TopapiError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found

    The record store returns None for missing rows; resource services turn
    that (and lookup errors on malformed identifiers) into this exception.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message or f"{resource} not found", context=ctx)


class RateLimitExceededError(TopapiError):
    """
    Raised when a client exceeds the per-address request budget.

    HTTP: 429 Too Many Requests, with a Retry-After header.
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Too many requests from this IP, please try again later."
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DependencyError(TopapiError):
    """
    An external collaborator (record store, identity provider) failed.

    HTTP: 500 Internal Server Error

    Security Note:
        The message returned to the client is always the generic
        "Internal server error". The original error is kept in context
        and logged server-side only.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A dependency failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreError(DependencyError):
    """A record store query, insert, update or delete failed."""

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityProviderError(DependencyError):
    """The identity provider was unreachable or answered with a 5xx."""

    def __init__(
        self,
        message: str = "Identity provider unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ServiceUnavailableError(TopapiError):
    """A readiness probe failed. HTTP: 503 Service Unavailable."""

    status_code = 503

    def __init__(
        self,
        message: str = "Service unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
