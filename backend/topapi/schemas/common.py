"""
Topapi Backend: Shared Schema Types and Envelope Models
=========================================================

What:  Field types reused by every resource schema, plus the response
       envelope models used for OpenAPI documentation.
Why:   One definition of "non-empty string", "email", "role" and "language"
       keeps the per-resource rules consistent.
How:   Annotated types carry the constraints; `before` validators lower-case
       enumerations so "Admin" and "admin" are the same value.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, Generic, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints


def _lower(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("must not be null")
    return value


# ── Field types ───────────────────────────────────────────────────────────

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Optional on patch, but an explicit null is rejected
PatchStr = Annotated[NonEmptyStr, BeforeValidator(_reject_null)]
PatchCount = Annotated[int, Field(ge=0), BeforeValidator(_reject_null)]

Email = Annotated[
    str,
    StringConstraints(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254),
    BeforeValidator(_lower),
]

Password = Annotated[str, StringConstraints(min_length=6, max_length=72)]

Role = Annotated[Literal["admin", "staff"], BeforeValidator(_lower)]
Language = Annotated[Literal["en", "es"], BeforeValidator(_lower)]
Action = Annotated[Literal["created", "updated", "deleted"], BeforeValidator(_lower)]


class InputSchema(BaseModel):
    """Base for request bodies: unknown fields are dropped, never stored."""

    model_config = ConfigDict(extra="ignore")


# ══════════════════════════════════════════════════════════════════════════
# Envelope Models (OpenAPI only; handlers build the JSON themselves)
# ══════════════════════════════════════════════════════════════════════════

T = TypeVar("T")


class PageInfo(BaseModel):
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")
    total: int = Field(description="Total matching records")
    totalPages: int = Field(description="ceil(total / limit)")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class PageEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: List[T] = Field(default_factory=list)
    pagination: PageInfo


class MessageEnvelope(BaseModel):
    success: bool = True
    message: str


class ViolationModel(BaseModel):
    field: str
    rule: str
    message: str


class ErrorBody(BaseModel):
    message: str = Field(description="Client-safe message; 500s are always 'Internal server error'")
    details: Optional[List[ViolationModel]] = None
    stack: Optional[str] = Field(default=None, description="Development environment only")


class ErrorEnvelope(BaseModel):
    """
    Failure envelope returned by every error path.

    Example:
        {
            "success": false,
            "error": {"message": "Admin access required"},
            "timestamp": "2024-01-15T12:00:00.000000+00:00"
        }
    """

    success: bool = False
    error: ErrorBody
    timestamp: datetime


ERROR_RESPONSES = {
    400: {"description": "Validation failed", "model": ErrorEnvelope},
    401: {"description": "Missing or invalid token", "model": ErrorEnvelope},
    403: {"description": "Not allowed", "model": ErrorEnvelope},
    404: {"description": "Not found", "model": ErrorEnvelope},
    429: {"description": "Rate limit exceeded", "model": ErrorEnvelope},
    500: {"description": "Server error", "model": ErrorEnvelope},
}


# ══════════════════════════════════════════════════════════════════════════
# Request Body Documentation
# ══════════════════════════════════════════════════════════════════════════
# Handlers accept the raw body and validate it through topapi.validation so
# that failures use the 400 envelope. These helpers publish the body shape.

REQUEST_SCHEMAS: Dict[str, Type[BaseModel]] = {}

# Operation-level override of the global bearer requirement
PUBLIC_OPERATION: Dict[str, Any] = {"security": []}


def request_body(schema: Type[BaseModel], public: bool = False) -> Dict[str, Any]:
    """
    `openapi_extra` for a route whose JSON body has the shape of `schema`.

    The schema itself is added to components.schemas by install_openapi().

    Example:
        @router.post("/login", openapi_extra=request_body(LoginRequest, public=True))
    """
    REQUEST_SCHEMAS[schema.__name__] = schema
    extra: Dict[str, Any] = {
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": {"$ref": f"#/components/schemas/{schema.__name__}"}
                }
            },
        }
    }
    if public:
        extra.update(PUBLIC_OPERATION)
    return extra


def request_schema_components() -> Dict[str, Any]:
    """JSON schemas for every registered request body, nested models included."""
    components: Dict[str, Any] = {}
    for name, schema in REQUEST_SCHEMAS.items():
        definition = schema.model_json_schema(ref_template="#/components/schemas/{model}")
        components.update(definition.pop("$defs", {}))
        components[name] = definition
    return components
