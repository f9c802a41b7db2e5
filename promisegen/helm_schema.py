"""Derive an OpenAPI v3 schema from a set of Helm chart values."""

from __future__ import annotations

from typing import Any

PRESERVE_UNKNOWN = "x-kubernetes-preserve-unknown-fields"
INT_OR_STRING = "x-kubernetes-int-or-string"


class UnsupportedValueError(TypeError):
    """Raised when a chart value has a type that has no schema counterpart."""


def helm_values_to_schema(values: dict[str, Any]) -> dict[str, Any]:
    """Return an object schema with one property per top-level value."""
    return {
        "type": "object",
        "properties": {key: value_schema(value) for key, value in values.items()},
    }


def value_schema(value: Any) -> dict[str, Any]:
    """Return the schema describing a single chart value."""
    if isinstance(value, str):
        return {"type": "string"}
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, int):
        return {"type": "integer"}
    if isinstance(value, float):
        return {"type": "number"}
    if isinstance(value, dict):
        return {
            "type": "object",
            "properties": {str(k): value_schema(v) for k, v in value.items()},
            PRESERVE_UNKNOWN: True,
        }
    if isinstance(value, list):
        items = value_schema(value[0]) if value else {INT_OR_STRING: True}
        return {"type": "array", "items": items}
    if value is None:
        return {"type": "object", "properties": {}, PRESERVE_UNKNOWN: True}
    raise UnsupportedValueError(
        f"unsupported type {type(value).__name__} found in helm chart values for {value!r}"
    )