"""Build a Promise API and example resource from a Kubernetes operator's CRD."""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml


class OperatorPromiseError(Exception):
    """Raised when the operator's CRD cannot be found or used."""


def _child(mapping: dict[str, Any], key: str) -> dict[str, Any]:
    value = mapping.get(key)
    if not isinstance(value, dict):
        value = mapping[key] = {}
    return value


def _versions(crd: dict[str, Any]) -> list[dict[str, Any]]:
    versions = _child(crd, "spec").get("versions") or []
    if not versions:
        raise OperatorPromiseError("no versions found in CRD")
    return versions


def find_target_crd(crd_name: str, dependencies: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Return a copy of the CustomResourceDefinition named ``crd_name``."""
    for dependency in dependencies:
        metadata = dependency.get("metadata") or {}
        if (
            dependency.get("kind") == "CustomResourceDefinition"
            and metadata.get("name") == crd_name
        ):
            return copy.deepcopy(dict(dependency))
    raise OperatorPromiseError(f"no CRD found matching name: {crd_name}")


def find_stored_version_index(crd: dict[str, Any]) -> int:
    """Return the index of the storage version, or 0 when none is marked."""
    versions = _versions(crd)
    return next(
        (index for index, version in enumerate(versions) if version.get("storage")), 0
    )


def operator_env(crd: dict[str, Any], stored_index: int) -> dict[str, str]:
    """Return the environment telling the pipeline which operator resource to create."""
    spec = _child(crd, "spec")
    return {
        "OPERATOR_GROUP": spec.get("group", ""),
        "OPERATOR_VERSION": _versions(crd)[stored_index].get("name", ""),
        "OPERATOR_KIND": (spec.get("names") or {}).get("kind", ""),
    }


def update_operator_crd(
    crd: dict[str, Any],
    stored_index: int,
    group: str,
    kind: str,
    plural: str,
    version: str,
) -> dict[str, Any]:
    """Turn the operator CRD into the Promise API, keeping only its stored version.

    An empty ``plural`` defaults to the lower-case kind plus "s"; an empty
    ``version`` keeps the stored version's name. Changes the CRD in place.
    """
    plural = plural or f"{kind.lower()}s"
    versions = _versions(crd)
    spec = _child(crd, "spec")
    spec["names"] = {"plural": plural, "singular": kind.lower(), "kind": kind}
    _child(crd, "metadata")["name"] = f"{plural}.{group}"
    spec["group"] = group

    stored = versions[stored_index]
    version = version or stored.get("name", "")
    stored["name"] = version
    stored["storage"] = True
    stored["served"] = True
    properties = _child(_child(_child(stored, "schema"), "openAPIV3Schema"), "properties")
    properties["kind"] = {"type": "string", "enum": [kind]}
    properties["apiVersion"] = {"type": "string", "enum": [f"{group}/{version}"]}
    spec["versions"] = [stored]
    return crd


def top_level_required_fields(crd: dict[str, Any]) -> dict[str, str] | None:
    """Return placeholders for the required spec fields, or None if there are none."""
    schema = (_versions(crd)[0].get("schema") or {}).get("openAPIV3Schema") or {}
    spec = (schema.get("properties") or {}).get("spec") or {}
    required = spec.get("required") or []
    if not required:
        return None
    properties = spec.get("properties") or {}
    return {
        name: f"# type {(properties.get(name) or {}).get('type', '')}" for name in required
    }


def example_resource(crd: dict[str, Any], kind: str) -> dict[str, Any]:
    """Return an example resource request for the Promise API."""
    spec = _child(crd, "spec")
    return {
        "apiVersion": f"{spec.get('group', '')}/{_versions(crd)[0].get('name', '')}",
        "kind": kind,
        "metadata": {"name": "example-database", "namespace": "default"},
        "spec": top_level_required_fields(crd),
    }


def write_promise_files(output_dir: str, files: Mapping[str, Any]) -> None:
    """Write the files under ``output_dir``.

    A mapping stored under a key with no file extension becomes a
    subdirectory; strings are written as they are; anything else as YAML.
    """
    root = Path(output_dir)
    root.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        target = root / name
        if isinstance(content, Mapping) and not Path(name).suffix:
            target.mkdir(parents=True, exist_ok=True)
            write_promise_files(str(target), content)
        elif isinstance(content, str):
            target.write_text(content, encoding="utf-8")
        else:
            target.write_text(
                yaml.safe_dump(content, sort_keys=True, default_flow_style=False),
                encoding="utf-8",
            )