"""Utilities for generating tool input schemas from parameter models."""

import types
from typing import Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic_core import PydanticUndefined

from compass_bridge.core.mcp.models import Tool


def python_type_to_json_schema(python_type: Any) -> dict[str, Any]:
    """Convert Python type hint to JSON schema type definition.

    Args:
        python_type: Python type to convert

    Returns:
        JSON schema type definition
    """
    origin = get_origin(python_type)
    args = get_args(python_type)

    # Optional[X] collapses to X; optional-ness is expressed by "required"
    if origin is Union or origin is types.UnionType:
        non_none = [arg for arg in args if arg is not type(None)]
        if len(non_none) == 1:
            return python_type_to_json_schema(non_none[0])
        return {"anyOf": [python_type_to_json_schema(arg) for arg in non_none]}

    if origin is Literal:
        values = list(args)
        schema: dict[str, Any] = {"enum": values}
        if all(isinstance(v, str) for v in values):
            schema["type"] = "string"
        return schema

    if python_type is str:
        return {"type": "string"}
    elif python_type is bool:
        return {"type": "boolean"}
    elif python_type is int:
        return {"type": "integer"}
    elif python_type is float:
        return {"type": "number"}
    elif python_type is list or origin is list:
        if args and args[0] is not Any:
            return {"type": "array", "items": python_type_to_json_schema(args[0])}
        return {"type": "array"}
    elif python_type is dict or origin is dict:
        return {"type": "object"}
    elif isinstance(python_type, type) and issubclass(python_type, BaseModel):
        return model_input_schema(python_type)
    else:
        # Any and unknown types are left unconstrained
        return {}


def model_input_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Build an ``inputSchema`` object from a Pydantic parameter model.

    Field aliases are used as property names so the schema matches what
    callers send.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    for field_name, field in model.model_fields.items():
        name = field.alias or field_name
        schema = python_type_to_json_schema(field.annotation)
        if field.description:
            schema["description"] = field.description

        if field.is_required():
            required.append(name)
        elif field.default is not PydanticUndefined and field.default is not None:
            schema["default"] = field.default

        properties[name] = schema

    result: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        result["required"] = required
    return result


def tool_from_model(name: str, description: str, model: type[BaseModel]) -> Tool:
    """Describe a tool whose arguments are validated by ``model``."""
    return Tool(name=name, description=description, inputSchema=model_input_schema(model))
