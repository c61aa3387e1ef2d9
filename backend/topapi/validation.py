"""
Topapi Backend: Validation Layer
==================================

What:  Runs a request payload through its pydantic schema and turns every
       failure into a flat list of violations.
Why:   All resources report input errors the same way, and no store call is
       issued until the list is empty.
How:   collect_violations() only inspects; validate_payload() raises
       ValidationError (400) or returns the normalized values:
           - strings trimmed, enumerations lower-cased
           - unset optional fields defaulted on create
           - unset fields omitted on partial updates
       The caller's dict is never mutated.

Violation format (serialized into error.details):
    {"field": "quantity", "rule": "min", "message": "Input should be greater than or equal to 0"}
"""

import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from topapi.exceptions import ValidationError

# pydantic error types → rule names reported to clients
RULE_NAMES = {
    "missing": "required",
    "greater_than_equal": "min",
    "less_than_equal": "max",
    "string_too_short": "min_length",
    "string_too_long": "max_length",
    "string_pattern_mismatch": "format",
    "literal_error": "enum",
    "uuid_parsing": "uuid",
    "uuid_type": "uuid",
    "int_parsing": "integer",
    "int_type": "integer",
    "int_from_float": "integer",
    "string_type": "string",
    "model_type": "object",
    "dict_type": "object",
    "json_invalid": "json",
    "value_error": "value",
}


@dataclass(frozen=True)
class Violation:
    field: str
    rule: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


def violations_from_errors(errors: Iterable[Mapping[str, Any]], skip_prefix: int = 0) -> List[Violation]:
    """
    Convert pydantic/FastAPI error dicts to violations.

    Args:
        errors:       Items of ValidationError.errors()
        skip_prefix:  Leading loc entries to drop (FastAPI prefixes "body"/"query")
    """
    violations = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())][skip_prefix:]
        error_type = error.get("type", "value_error")
        violations.append(
            Violation(
                field=".".join(loc) or "body",
                rule=RULE_NAMES.get(error_type, error_type),
                message=str(error.get("msg", "Invalid value")),
            )
        )
    return violations


def collect_violations(schema: Type[BaseModel], payload: Any) -> List[Violation]:
    """Every rule the payload breaks; an empty list means it is valid."""
    if not isinstance(payload, Mapping):
        return [Violation(field="body", rule="object", message="Request body must be a JSON object")]
    try:
        schema.model_validate(dict(payload))
    except PydanticValidationError as e:
        return violations_from_errors(e.errors())
    return []


def validate_payload(
    schema: Type[BaseModel], payload: Any, partial: bool = False
) -> Dict[str, Any]:
    """
    Validate, then normalize.

    Raises:
        ValidationError: with the violation list when any rule is broken.
    """
    violations = collect_violations(schema, payload)
    if violations:
        raise ValidationError(
            violations=[v.as_dict() for v in violations],
            context={"schema": schema.__name__},
        )
    model = schema.model_validate(dict(payload))
    return model.model_dump(mode="json", exclude_unset=partial)


def validate_identifier(value: Any, message: str = "Invalid ID", field: str = "id") -> str:
    """Check UUID shape of a path or filter identifier; returns the canonical dashed form."""
    try:
        parsed = uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(
            message=message,
            violations=[{"field": field, "rule": "uuid", "message": f"{field} must be a UUID"}],
        )
    return str(parsed)
