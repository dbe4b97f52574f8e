"""Helpers for turning node parameter values into request values."""

import json
from typing import Any, Dict, List, Mapping

from whaapy.workflows.engine.errors import NodeValidationError, PayloadJSONError


def is_empty(value: Any) -> bool:
    # 0 and False are real values
    return value is None or (isinstance(value, str) and value == "")


def parse_json_field(name: str, value: Any) -> Any:
    """
    Parse a JSON-typed parameter.

    Strings are decoded once; values that are already structured pass
    through untouched.

    Raises:
        PayloadJSONError: If the string is not valid JSON
    """
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise PayloadJSONError(name, e.msg) from e


def parse_collection(name: str, value: Any) -> Mapping[str, Any]:
    """
    Return a parameter collection as a mapping.

    A collection set through an expression arrives as JSON text.

    Raises:
        PayloadJSONError: If the text is not valid JSON
        NodeValidationError: If the value is not an object
    """
    if is_empty(value):
        return {}
    value = parse_json_field(name, value)
    if not isinstance(value, Mapping):
        raise NodeValidationError(f"Parameter '{name}' must be an object, got {type(value).__name__}")
    return value


def split_csv(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value]
    return [part.strip() for part in str(value).split(",")]


def set_path(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    """Set ``value`` at a dotted key, creating intermediate dicts."""
    *parents, leaf = dotted_key.split(".")
    node = target
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value
