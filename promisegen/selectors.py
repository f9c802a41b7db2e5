"""Add, change and remove the destination selectors of a Promise."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from promisegen.dependencies import PROMISE_FILE_NAME, DependencyError, load_promise


class SelectorError(ValueError):
    """Raised when a selector is malformed or the Promise cannot be read."""


def apply_destination_selector(promise: dict[str, Any], selector: str) -> dict[str, Any]:
    """Apply ``KEY=VALUE`` (add or update) or ``KEY-`` (remove) to the Promise.

    Only the first destination selector is touched. The Promise is changed in
    place and returned.
    """
    spec = promise.get("spec")
    if not isinstance(spec, dict):
        spec = promise["spec"] = {}
    selectors = spec.get("destinationSelectors") or []

    parts = selector.split("=")
    if len(parts) == 2:
        if not selectors:
            selectors = [{"matchLabels": {}}]
        spec["destinationSelectors"] = selectors
        first = selectors[0]
        labels = first.get("matchLabels")
        if not isinstance(labels, dict):
            labels = first["matchLabels"] = {}
        key, value = parts
        labels[key] = value
        return promise

    if not selector.endswith("-"):
        raise SelectorError(f"invalid destination key: {selector}")
    key = selector.rstrip("-")
    if selectors:
        labels = selectors[0].get("matchLabels")
        if isinstance(labels, dict):
            labels.pop(key, None)
    return promise


def update_destination_selector(directory: str, selector: str) -> dict[str, Any]:
    """Apply a selector change to the directory's promise.yaml and return the Promise."""
    path = Path(directory) / PROMISE_FILE_NAME
    try:
        promise = load_promise(str(path))
    except (OSError, yaml.YAMLError, DependencyError) as exc:
        raise SelectorError(f"failed to find promise.yaml in directory: {exc}") from exc

    apply_destination_selector(promise, selector)
    path.write_text(
        yaml.safe_dump(promise, sort_keys=True, default_flow_style=False), encoding="utf-8"
    )
    return promise