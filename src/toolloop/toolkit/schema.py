"""JSON Schema subset used for tool parameters.

Declared schemas are checked once at registration time. Parsed arguments
are checked against them before a handler runs; problems are reported as
a list of strings so the dispatcher can hand them back to the model.
"""

from __future__ import annotations

import re
from typing import Any

from toolloop.exceptions import InvalidConfigurationError

TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

_PRIMITIVE_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
    "null": (type(None),),
}


def validate_tool_name(name: str) -> None:
    """Raise InvalidConfigurationError if *name* is not a valid tool name."""
    if not isinstance(name, str) or not TOOL_NAME_PATTERN.fullmatch(name):
        raise InvalidConfigurationError(
            f"Invalid tool name {name!r}: must match {TOOL_NAME_PATTERN.pattern}"
        )


def validate_parameter_schema(schema: dict, *, path: str = "parameters") -> None:
    """Validate a tool parameter schema against the supported subset.

    Args:
        schema: JSON Schema dict. The top level must be an object schema.
        path: Location prefix used in error messages.

    Raises:
        InvalidConfigurationError: On the first unsupported construct.
    """
    if not isinstance(schema, dict):
        raise InvalidConfigurationError(f"{path}: schema must be a dict")
    if schema.get("type") != "object":
        raise InvalidConfigurationError(f"{path}: top-level type must be 'object'")
    _validate_node(schema, path)


def _validate_node(node: dict, path: str) -> None:
    node_type = node.get("type")
    if node_type is not None:
        types = node_type if isinstance(node_type, list) else [node_type]
        for t in types:
            if t not in _PRIMITIVE_TYPES:
                raise InvalidConfigurationError(f"{path}: unsupported type {t!r}")

    if "enum" in node:
        enum = node["enum"]
        if not isinstance(enum, list) or not enum:
            raise InvalidConfigurationError(f"{path}.enum: must be a non-empty list")

    properties = node.get("properties")
    if properties is not None:
        if not isinstance(properties, dict):
            raise InvalidConfigurationError(f"{path}.properties: must be a dict")
        for prop_name, prop_schema in properties.items():
            if not isinstance(prop_schema, dict):
                raise InvalidConfigurationError(
                    f"{path}.properties.{prop_name}: must be a dict"
                )
            _validate_node(prop_schema, f"{path}.properties.{prop_name}")

    required = node.get("required")
    if required is not None:
        if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
            raise InvalidConfigurationError(f"{path}.required: must be a list of strings")
        missing = [r for r in required if r not in (properties or {})]
        if missing:
            raise InvalidConfigurationError(
                f"{path}.required: unknown properties {missing}"
            )

    items = node.get("items")
    if items is not None:
        if not isinstance(items, dict):
            raise InvalidConfigurationError(f"{path}.items: must be a dict")
        _validate_node(items, f"{path}.items")


def check_arguments(schema: dict, arguments: dict) -> list[str]:
    """Check parsed arguments against a declared schema.

    Only the top level is checked: required keys, enum membership, and
    primitive types of declared properties. Unknown keys are tolerated.

    Returns:
        List of human-readable problems. Empty when the arguments fit.
    """
    problems: list[str] = []
    properties: dict = schema.get("properties") or {}

    for key in schema.get("required") or []:
        if key not in arguments:
            problems.append(f"missing required argument '{key}'")

    for key, value in arguments.items():
        prop = properties.get(key)
        if prop is None:
            continue
        if "enum" in prop and value not in prop["enum"]:
            problems.append(f"argument '{key}' must be one of {prop['enum']}, got {value!r}")
            continue
        expected = prop.get("type")
        if expected is not None and not _matches_type(value, expected):
            problems.append(f"argument '{key}' must be of type {expected}, got {type(value).__name__}")

    return problems


def _matches_type(value: Any, expected: str | list[str]) -> bool:
    types = expected if isinstance(expected, list) else [expected]
    for t in types:
        py_types = _PRIMITIVE_TYPES.get(t)
        if py_types is None:
            return True
        # bool is an int subclass; JSON keeps them apart
        if isinstance(value, bool) and t in ("number", "integer"):
            continue
        if isinstance(value, py_types):
            return True
    return False
