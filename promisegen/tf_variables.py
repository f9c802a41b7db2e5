"""Convert Terraform input variables into a CRD spec schema."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class TerraformVariable:
    """A Terraform input variable."""

    name: str
    type: str = ""
    description: str = ""
    default: Any = None


class UnsupportedTypeError(ValueError):
    """Raised when a Terraform type cannot be expressed in a CRD schema."""


def variables_to_crd_spec_schema(
    variables: list[TerraformVariable],
) -> tuple[dict[str, Any], list[str]]:
    """Return the spec schema and warnings for variables that were skipped."""
    properties: dict[str, Any] = {}
    warnings: list[str] = []

    for variable in variables:
        var_type = variable.type
        if not var_type:
            var_type = infer_type_from_default(variable.default)
            if not var_type:
                warnings.append(
                    f"warning: Type not set for variable {variable.name} and cannot be "
                    "inferred from the default value, skipping"
                )
                continue
        try:
            prop = terraform_type_to_crd(var_type)
        except UnsupportedTypeError:
            warnings.append(
                f"warning: unable to automatically convert {variable.name} of type "
                f"{var_type} into CRD, skipping"
            )
            continue
        if variable.description:
            prop["description"] = variable.description
        properties[variable.name] = prop

    return {"type": "object", "properties": properties}, warnings


def infer_type_from_default(value: Any) -> str:
    """Guess a Terraform type from a default value; empty if impossible."""
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        if value:
            inner = infer_type_from_default(value[0])
            if inner:
                return f"list({inner})"
        return "list"
    return ""


def _inner_type(terraform_type: str, container: str) -> str:
    inner = terraform_type.removeprefix(container + "(")
    return inner.removesuffix(")").strip()


def terraform_type_to_crd(terraform_type: str) -> dict[str, Any]:
    """Return the schema for a Terraform type expression."""
    terraform_type = terraform_type.strip()

    if terraform_type == "string":
        return {"type": "string"}
    if terraform_type == "number":
        return {"type": "number"}
    if terraform_type in ("bool", "boolean"):
        return {"type": "boolean"}

    if terraform_type.startswith("list("):
        try:
            items = terraform_type_to_crd(_inner_type(terraform_type, "list"))
        except UnsupportedTypeError:
            raise UnsupportedTypeError("unsupported list type") from None
        return {"type": "array", "items": items}

    if terraform_type.startswith("map("):
        try:
            values = terraform_type_to_crd(_inner_type(terraform_type, "map"))
        except UnsupportedTypeError:
            return {"type": "object", "x-kubernetes-preserve-unknown-fields": True}
        return {"type": "object", "additionalProperties": values}

    if terraform_type.startswith("object("):
        return {"type": "object", "x-kubernetes-preserve-unknown-fields": True}

    raise UnsupportedTypeError(f"unsupported type: {terraform_type}")