"""Pipeline definitions and container path parsing for Promise workflows."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import yaml

PIPELINE_API_VERSION = "platform.kratix.io/v1alpha1"
PIPELINE_NAME = "instance-configure"
TERRAFORM_CONTAINER_NAME = "terraform-generate"
TERRAFORM_CONTAINER_IMAGE = "ghcr.io/syntasso/kratix-cli/terraform-generate:v0.1.0"


@dataclass(frozen=True)
class ContainerCmdArgs:
    """The parts of a LIFECYCLE/ACTION/PIPELINE-NAME container path."""

    lifecycle: str
    action: str
    pipeline: str


def parse_container_cmd_args(container_path: str) -> ContainerCmdArgs:
    """Split a container path into lifecycle, action and pipeline name."""
    parts = container_path.split("/")
    if len(parts) != 3:
        raise ValueError(
            f"invalid pipeline format: {container_path}, "
            "expected format: LIFECYCLE/ACTION/PIPELINE-NAME"
        )
    lifecycle, action, pipeline = parts
    return ContainerCmdArgs(lifecycle=lifecycle, action=action, pipeline=pipeline)


def _container(name: str, image: str, env: Mapping[str, str]) -> dict[str, Any]:
    container: dict[str, Any] = {"name": name, "image": image}
    if env:
        container["env"] = [{"name": key, "value": value} for key, value in env.items()]
    return container


def resource_configure_pipelines(
    container_name: str, container_image: str, env: Mapping[str, str]
) -> list[dict[str, Any]]:
    """Return the resource configure workflow running one container."""
    return [
        {
            "apiVersion": PIPELINE_API_VERSION,
            "kind": "Pipeline",
            "metadata": {"name": PIPELINE_NAME},
            "spec": {"containers": [_container(container_name, container_image, env)]},
        }
    ]


def terraform_module_pipelines(module_source: str, module_version: str) -> list[dict[str, Any]]:
    """Return the resource configure workflow generating Terraform for a module."""
    return resource_configure_pipelines(
        TERRAFORM_CONTAINER_NAME,
        TERRAFORM_CONTAINER_IMAGE,
        {"MODULE_SOURCE": module_source, "MODULE_VERSION": module_version},
    )


def terraform_module_pipeline_yaml(module_source: str, module_version: str) -> str:
    """Return the Terraform module workflow serialised as YAML."""
    return yaml.safe_dump(
        terraform_module_pipelines(module_source, module_version),
        sort_keys=True,
        default_flow_style=False,
    )