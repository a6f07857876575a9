"""Validation utilities for tool arguments.

Reports every validation problem at once so an LLM caller can fix all of
them in a single retry.
"""

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from .exceptions import InvalidArgumentsError

ModelT = TypeVar("ModelT", bound=BaseModel)


def format_validation_errors(
    error: ValidationError, context: str = "parameters"
) -> str:
    """Format all Pydantic validation errors into a clear message for LLMs.

    Args:
        error: The Pydantic ValidationError containing all validation failures
        context: Description of what was being validated (e.g., "generate_code arguments")

    Returns:
        Formatted error message showing all validation errors at once
    """
    errors = error.errors()

    if len(errors) == 1:
        err = errors[0]
        field = ".".join(str(x) for x in err["loc"])
        input_val = err.get("input", "N/A")
        return (
            f"Invalid {context}: {field} - {err['msg']} (received: {repr(input_val)})"
        )

    msg_lines = [f"Invalid {context} - {len(errors)} errors:"]
    for err in errors:
        field = ".".join(str(x) for x in err["loc"])
        input_val = err.get("input", "N/A")
        input_type = type(input_val).__name__ if input_val != "N/A" else "unknown"
        msg_lines.append(
            f"  • {field}: {err['msg']} (received {input_type}: {repr(input_val)})"
        )

    msg_lines.append("\nPlease fix all errors and retry with correct types.")
    return "\n".join(msg_lines)


def validate_arguments(
    model: type[ModelT], tool_name: str, arguments: dict[str, Any] | None
) -> ModelT:
    """Validate raw tool arguments against a parameter model.

    Raises:
        InvalidArgumentsError: With every validation problem listed
    """
    if arguments is not None and not isinstance(arguments, dict):
        raise InvalidArgumentsError(
            tool_name,
            f"Invalid {tool_name} arguments: expected an object, "
            f"received {type(arguments).__name__}",
        )
    try:
        return model.model_validate(arguments or {})
    except ValidationError as e:
        raise InvalidArgumentsError(
            tool_name,
            format_validation_errors(e, f"{tool_name} arguments"),
            {"errors": len(e.errors())},
        ) from e


# Common type coercion validators for reuse across models
def coerce_bool(v: Any) -> bool | Any:
    """Coerce common string representations to boolean.

    Handles LLM callers passing "true" instead of true.
    """
    if isinstance(v, str):
        lower_v = v.lower()
        if lower_v in ("true", "1", "yes", "on"):
            return True
        elif lower_v in ("false", "0", "no", "off", ""):
            return False
    return v


def coerce_int(v: Any) -> int | Any:
    """Coerce string numbers to integers."""
    if isinstance(v, str):
        try:
            return int(v)
        except ValueError:
            pass  # Let Pydantic handle the error with proper context
    return v


def coerce_float(v: Any) -> float | Any:
    """Coerce string numbers to floats."""
    if isinstance(v, str):
        try:
            return float(v)
        except ValueError:
            pass  # Let Pydantic handle the error with proper context
    return v


def parse_json_object(v: Any) -> Any:
    """Parse a JSON object passed as a string.

    Handles LLM callers sending '{"a": 1}' where an object is expected.
    """
    if isinstance(v, str):
        try:
            parsed = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError("Must be a JSON object")
        return parsed
    return v
