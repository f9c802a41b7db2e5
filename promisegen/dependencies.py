"""Collect Kubernetes manifests as Promise dependencies and store them."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import yaml

PROMISE_FILE_NAME = "promise.yaml"
DEPENDENCIES_FILE_NAME = "dependencies.yaml"


class DependencyError(Exception):
    """Raised when dependencies cannot be read or stored."""


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=True, default_flow_style=False)


def is_yaml(file_name: str) -> bool:
    """Return whether the file name has a YAML extension."""
    return Path(file_name).suffix in (".yaml", ".yml")


def extract_dependencies_from_file(path: str) -> list[dict[str, Any]]:
    """Return every object in a YAML or JSON file, defaulting the namespace."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise DependencyError(f"failed to open dependency file {path}: {exc}") from exc

    dependencies: list[dict[str, Any]] = []
    try:
        documents = list(yaml.safe_load_all(text))
    except yaml.YAMLError as exc:
        raise DependencyError(f"failed to decode dependency file {path}: {exc}") from exc

    for document in documents:
        if document is None:
            continue
        if not isinstance(document, dict):
            raise DependencyError(
                f"failed to decode dependency file {path}: document is not an object"
            )
        if not document.get("kind"):
            raise DependencyError(
                f"failed to decode dependency file {path}: Object 'Kind' is missing"
            )
        metadata = document.setdefault("metadata", {})
        if metadata is None:
            metadata = document["metadata"] = {}
        if not metadata.get("namespace"):
            metadata["namespace"] = "default"
        dependencies.append(document)
    return dependencies


def build_dependencies(path: str) -> list[dict[str, Any]]:
    """Collect dependencies from a file, or from the YAML files under a directory."""
    root = Path(path)
    if not root.exists():
        raise DependencyError(f"failed to stat dependency: {path}")

    if not root.is_dir():
        dependencies = extract_dependencies_from_file(path)
        if not dependencies:
            raise DependencyError(f"no valid dependencies found in directory: {path}")
        return dependencies

    try:
        entries = sorted(root.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        raise DependencyError(f"failed to read dependency directory: {path}") from exc
    if not entries:
        raise DependencyError(f"no files found in directory: {path}; nothing to update")

    dependencies = []
    for entry in entries:
        if entry.is_dir():
            dependencies.extend(build_dependencies(str(entry)))
        elif is_yaml(entry.name):
            dependencies.extend(extract_dependencies_from_file(str(entry)))

    if not dependencies:
        raise DependencyError(f"no valid dependencies found in directory: {path}")
    return dependencies


def copy_files(src: str, dest: str) -> None:
    """Copy a file, or the contents of a directory, into directory ``dest``."""
    source = Path(src)
    target = Path(dest)
    if source.is_dir():
        for entry in sorted(source.iterdir(), key=lambda e: e.name):
            if entry.is_dir():
                sub = target / entry.name
                sub.mkdir(mode=0o755)
                copy_files(str(entry), str(sub))
            else:
                shutil.copyfile(entry, target / entry.name)
        return
    if source.is_file():
        shutil.copyfile(source, target / source.name)
        return
    if not source.exists():
        raise FileNotFoundError(src)
    raise DependencyError("unsupported type for dependencies: must be file or directory")


def promise_file_mode(directory: str) -> tuple[str, str]:
    """Return ("flat", promise file) or ("split", dependencies file) for a Promise directory."""
    base = Path(directory)
    if not (base / DEPENDENCIES_FILE_NAME).exists() and (base / PROMISE_FILE_NAME).exists():
        return "flat", PROMISE_FILE_NAME
    return "split", DEPENDENCIES_FILE_NAME


def load_promise(path: str) -> dict[str, Any]:
    """Read a Promise document from a YAML file."""
    promise = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if promise is None:
        return {}
    if not isinstance(promise, dict):
        raise DependencyError(f"{path} does not hold a Promise object")
    return promise


def update_promise_dependencies(directory: str, dependencies: list[dict[str, Any]]) -> None:
    """Replace the dependencies inlined in the directory's promise.yaml."""
    path = Path(directory) / PROMISE_FILE_NAME
    promise = load_promise(str(path))
    spec = promise.get("spec") or {}
    if dependencies:
        spec["dependencies"] = dependencies
    else:
        spec.pop("dependencies", None)
    promise["spec"] = spec
    path.write_text(_dump(promise), encoding="utf-8")


def update_dependencies(directory: str, dependencies_path: str) -> str:
    """Store the dependencies found at ``dependencies_path`` in the Promise; return the file updated."""
    mode, file_to_update = promise_file_mode(directory)
    dependencies = build_dependencies(dependencies_path)
    if mode == "split":
        (Path(directory) / DEPENDENCIES_FILE_NAME).write_text(_dump(dependencies), encoding="utf-8")
    else:
        update_promise_dependencies(directory, dependencies)
    return file_to_update