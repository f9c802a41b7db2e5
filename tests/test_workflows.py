import pytest
import yaml

from promisegen.workflows import (
    ContainerCmdArgs,
    parse_container_cmd_args,
    resource_configure_pipelines,
    terraform_module_pipeline_yaml,
    terraform_module_pipelines,
)


def test_parse_container_cmd_args_splits_parts():
    args = parse_container_cmd_args("promise/configure/pipeline0")
    assert args == ContainerCmdArgs(lifecycle="promise", action="configure", pipeline="pipeline0")


def test_parse_container_cmd_args_allows_empty_pipeline_name():
    args = parse_container_cmd_args("promise/configure/")
    assert args.pipeline == ""


@pytest.mark.parametrize("path", ["promise/delete", "a/b/c/d", ""])
def test_parse_container_cmd_args_rejects_wrong_part_count(path):
    with pytest.raises(ValueError) as excinfo:
        parse_container_cmd_args(path)
    assert str(excinfo.value) == (
        f"invalid pipeline format: {path}, expected format: LIFECYCLE/ACTION/PIPELINE-NAME"
    )


def test_resource_configure_pipelines_structure():
    env = {"OPERATOR_GROUP": "acid.zalan.do", "OPERATOR_KIND": "postgresql"}
    pipelines = resource_configure_pipelines(
        "from-api-to-operator", "ghcr.io/syntasso/kratix-cli/from-api-to-operator:v0.1.0", env
    )
    assert len(pipelines) == 1
    pipeline = pipelines[0]
    assert pipeline["apiVersion"] == "platform.kratix.io/v1alpha1"
    assert pipeline["kind"] == "Pipeline"
    assert pipeline["metadata"] == {"name": "instance-configure"}
    containers = pipeline["spec"]["containers"]
    assert len(containers) == 1
    assert containers[0]["name"] == "from-api-to-operator"
    assert containers[0]["image"] == "ghcr.io/syntasso/kratix-cli/from-api-to-operator:v0.1.0"
    assert containers[0]["env"] == [
        {"name": "OPERATOR_GROUP", "value": "acid.zalan.do"},
        {"name": "OPERATOR_KIND", "value": "postgresql"},
    ]


def test_resource_configure_pipelines_omits_empty_env():
    pipelines = resource_configure_pipelines("c", "img:1", {})
    assert "env" not in pipelines[0]["spec"]["containers"][0]


def test_terraform_module_pipelines_env_and_image():
    pipelines = terraform_module_pipelines("https://git.example.com/mod.git", "v1.2.3")
    container = pipelines[0]["spec"]["containers"][0]
    assert container["name"] == "terraform-generate"
    assert container["image"] == "ghcr.io/syntasso/kratix-cli/terraform-generate:v0.1.0"
    assert container["env"] == [
        {"name": "MODULE_SOURCE", "value": "https://git.example.com/mod.git"},
        {"name": "MODULE_VERSION", "value": "v1.2.3"},
    ]


def test_terraform_module_pipeline_yaml_round_trips():
    text = terraform_module_pipeline_yaml("https://git.example.com/mod.git", "v0.16.4")
    assert yaml.safe_load(text) == terraform_module_pipelines(
        "https://git.example.com/mod.git", "v0.16.4"
    )
    assert text.startswith("- apiVersion: platform.kratix.io/v1alpha1")