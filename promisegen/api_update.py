"""Update the group, version, kind and properties of a Promise API."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from promisegen.dependencies import PROMISE_FILE_NAME, DependencyError, load_promise

API_FILE_NAME = "api.yaml"
RESOURCE_FILE_NAME = "example-resource.yaml"
PROPERTY_TYPES = ("string", "number", "integer", "object", "boolean")


class ApiUpdateError(ValueError):
    """Raised when the API cannot be read or an update is malformed."""


@dataclass
class ApiUpdate:
    """The changes to make to a Promise API."""

    group: str = ""
    kind: str = ""
    version: str = ""
    plural: str = ""
    properties: list[str] = field(default_factory=list)

    def gvk_needs_update(self) -> bool:
        """Return whether any of group, version, kind or plural is set."""
        return bool(self.version or self.kind or self.group or self.plural)


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=True, default_flow_style=False)


def _child(mapping: dict[str, Any], key: str) -> dict[str, Any]:
    value = mapping.get(key)
    if not isinstance(value, dict):
        value = mapping[key] = {}
    return value


def _first_version(crd: dict[str, Any]) -> dict[str, Any]:
    versions = _child(crd, "spec").get("versions") or []
    if not versions:
        raise ApiUpdateError("no versions found in CRD")
    return versions[0]


def update_gvk(crd: dict[str, Any], update: ApiUpdate) -> dict[str, Any]:
    """Apply the group, version, kind and plural of ``update`` to the CRD."""
    spec = _child(crd, "spec")
    names = _child(spec, "names")
    if update.kind:
        names["kind"] = update.kind
        names["singular"] = update.kind.lower()
    if update.version:
        _first_version(crd)["name"] = update.version
    if update.group:
        spec["group"] = update.group
    if update.plural:
        names["plural"] = update.plural
    _child(crd, "metadata")["name"] = f"{names.get('plural', '')}.{spec.get('group', '')}"
    return crd


def _spec_properties(crd: dict[str, Any]) -> dict[str, Any]:
    schema = _child(_child(_first_version(crd), "schema"), "openAPIV3Schema")
    top = _child(schema, "properties")
    spec = top.get("spec")
    if not isinstance(spec, dict) or not isinstance(spec.get("properties"), dict):
        spec = top["spec"] = {"type": "object", "properties": {}}
    return spec["properties"]


def _remove_property(properties: dict[str, Any], path: str) -> None:
    *parents, last = path.split(".")
    current: dict[str, Any] | None = properties
    for name in parents:
        child = current.get(name) if current is not None else None
        if not isinstance(child, dict) or not isinstance(child.get("properties"), dict):
            current = None
            break
        current = child["properties"]
    if current is not None:
        current.pop(last, None)


def _add_property(properties: dict[str, Any], path: str, prop_type: str) -> None:
    if prop_type not in PROPERTY_TYPES:
        raise ApiUpdateError(f"unsupported property type: {prop_type}")
    *parents, last = path.split(".")
    current = properties
    for name in parents:
        child = current.get(name)
        if not isinstance(child, dict) or not isinstance(child.get("properties"), dict):
            child = current[name] = {"type": "object", "properties": {}}
        if child.get("type") != "object":
            raise ApiUpdateError(f"nested field {name} is not an object")
        current = child["properties"]
    current[last] = {"type": prop_type}


def update_crd(crd: dict[str, Any], update: ApiUpdate) -> dict[str, Any]:
    """Apply the whole update to the CRD in place and return it.

    A property is ``NAME:TYPE`` to add it, with '.' separating nested object
    fields, or ``NAME-`` to remove it.
    """
    if update.gvk_needs_update():
        update_gvk(crd, update)

    properties = _spec_properties(crd)
    for prop in update.properties:
        parts = prop.split(":")
        if len(parts) != 2:
            if not prop.endswith("-"):
                raise ApiUpdateError(f"invalid property format: {prop}")
            _remove_property(properties, prop.rstrip("-"))
            continue
        _add_property(properties, parts[0], parts[1])
    return crd


def update_example_resource(directory: str, crd: dict[str, Any]) -> dict[str, Any]:
    """Point the directory's example resource at the CRD's group, version and kind."""
    path = Path(directory) / RESOURCE_FILE_NAME
    resource = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(resource, dict):
        resource = {}
    spec = _child(crd, "spec")
    resource["apiVersion"] = f"{spec.get('group', '')}/{_first_version(crd).get('name', '')}"
    resource["kind"] = _child(spec, "names").get("kind", "")
    path.write_text(_dump(resource), encoding="utf-8")
    return resource


def update_api(directory: str, update: ApiUpdate) -> Path:
    """Update the API in api.yaml, or else in promise.yaml; return the file written."""
    base = Path(directory)
    api_path = base / API_FILE_NAME
    promise: dict[str, Any] | None = None

    if api_path.exists():
        target = api_path
        try:
            crd = yaml.safe_load(api_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ApiUpdateError(f"failed to parse {api_path}: {exc}") from exc
        if not isinstance(crd, dict):
            crd = {}
    else:
        target = base / PROMISE_FILE_NAME
        try:
            promise = load_promise(str(target))
        except OSError as exc:
            raise ApiUpdateError(
                f"failed to find {API_FILE_NAME} or {PROMISE_FILE_NAME} in directory. "
                f"Please run 'kratix init promise' first: {exc}"
            ) from exc
        except (yaml.YAMLError, DependencyError) as exc:
            raise ApiUpdateError(f"failed to parse {target}: {exc}") from exc
        crd = (promise.get("spec") or {}).get("api")
        if not isinstance(crd, dict):
            raise ApiUpdateError(f"{target} has no Promise API")

    if update.gvk_needs_update():
        update_gvk(crd, update)
        update_example_resource(directory, crd)
    update_crd(crd, replace(update, group="", kind="", version="", plural=""))

    if promise is None:
        target.write_text(_dump(crd), encoding="utf-8")
    else:
        _child(promise, "spec")["api"] = crd
        target.write_text(_dump(promise), encoding="utf-8")
    return target