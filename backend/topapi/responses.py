"""
Topapi Backend: Response Envelope
===================================

What:  Builds the uniform JSON envelope for every response.

    Success: {"success": true, "data": ..., "message"?: str, "pagination"?: {...}}
    Failure: {"success": false,
              "error": {"message": str, "details"?: [...], "stack"?: str},
              "timestamp": ISO-8601}

Security:
    Any 500 carries the generic "Internal server error" message. The
    stack trace is included only when ENVIRONMENT=development.
"""

import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from topapi.exceptions import RateLimitExceededError, TopapiError, ValidationError

INTERNAL_ERROR_MESSAGE = "Internal server error"


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    pagination: Optional[Dict[str, int]] = None,
    status_code: int = 200,
    include_data: bool = True,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": True}
    if include_data:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def error_body(
    status_code: int,
    message: str,
    details: Optional[List[Dict[str, Any]]] = None,
    exc: Optional[BaseException] = None,
    include_stack: bool = False,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {
        "message": INTERNAL_ERROR_MESSAGE if status_code == 500 else message,
    }
    if details:
        error["details"] = details
    if include_stack and exc is not None:
        error["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return {
        "success": False,
        "error": error,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def error_response(
    status_code: int,
    message: str,
    details: Optional[List[Dict[str, Any]]] = None,
    exc: Optional[BaseException] = None,
    include_stack: bool = False,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_body(status_code, message, details, exc, include_stack)),
        headers=headers,
    )


def exception_response(
    exc: TopapiError,
    include_stack: bool = False,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Failure envelope for a TopapiError.

    ValidationError adds its violations as `details`; RateLimitExceededError
    adds Retry-After. Used by the app's exception handler and by middleware,
    which runs outside it.
    """
    details = exc.violations if isinstance(exc, ValidationError) else None
    merged = dict(headers or {})
    if isinstance(exc, RateLimitExceededError):
        merged["Retry-After"] = str(exc.retry_after)
    return error_response(
        exc.status_code,
        exc.message,
        details=details,
        exc=exc,
        include_stack=include_stack,
        headers=merged or None,
    )
