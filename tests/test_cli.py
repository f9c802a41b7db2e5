from pathlib import Path

import pytest
import yaml

from promisegen.cli import build_parser, main


def _crd() -> dict:
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": "databases.syntasso.io"},
        "spec": {
            "group": "syntasso.io",
            "names": {"kind": "Database", "plural": "databases", "singular": "database"},
            "scope": "Namespaced",
            "versions": [
                {
                    "name": "v1alpha1",
                    "served": True,
                    "storage": True,
                    "schema": {
                        "openAPIV3Schema": {
                            "type": "object",
                            "properties": {
                                "spec": {
                                    "type": "object",
                                    "properties": {"size": {"type": "string"}},
                                }
                            },
                        }
                    },
                }
            ],
        },
    }


def _example_resource() -> dict:
    return {
        "apiVersion": "syntasso.io/v1alpha1",
        "kind": "Database",
        "metadata": {"name": "example", "namespace": "default"},
    }


def _write(path: Path, data) -> None:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def _read(path: Path):
    return yaml.safe_load(path.read_text(encoding="utf-8"))


@pytest.fixture
def split_dir(tmp_path):
    _write(tmp_path / "api.yaml", _crd())
    _write(tmp_path / "example-resource.yaml", _example_resource())
    return tmp_path


@pytest.fixture
def flat_dir(tmp_path):
    promise = {
        "apiVersion": "platform.kratix.io/v1alpha1",
        "kind": "Promise",
        "metadata": {"name": "postgresql"},
        "spec": {"api": _crd()},
    }
    _write(tmp_path / "promise.yaml", promise)
    _write(tmp_path / "example-resource.yaml", _example_resource())
    return tmp_path


def _spec_props(crd: dict) -> dict:
    return crd["spec"]["versions"][0]["schema"]["openAPIV3Schema"]["properties"]["spec"][
        "properties"
    ]


def test_parser_collects_repeated_properties():
    args = build_parser().parse_args(
        ["update", "api", "-p", "region:string", "--property", "port:integer"]
    )
    assert args.properties == ["region:string", "port:integer"]
    assert args.dir == "."


def test_no_subcommand_prints_help(capsys):
    assert main([]) == 0
    assert "A CLI tool for Kratix" in capsys.readouterr().out


def test_update_without_subcommand_prints_help(capsys):
    assert main(["update"]) == 0
    assert "Command to update kratix resources" in capsys.readouterr().out


def test_version_flag(capsys):
    assert main(["--version"]) == 0
    assert "0.4.0" in capsys.readouterr().out


def test_missing_argument_is_an_error():
    assert main(["update", "destination-selector"]) == 1


def test_update_api_adds_property_in_split_file(split_dir, capsys):
    assert main(["update", "api", "--property", "region:string", "--dir", str(split_dir)]) == 0
    assert "Promise api updated" in capsys.readouterr().out
    props = _spec_props(_read(split_dir / "api.yaml"))
    assert props["region"] == {"type": "string"}
    assert props["size"] == {"type": "string"}


def test_update_api_adds_nested_property(split_dir):
    assert main(["update", "api", "-p", "service.port:integer", "-d", str(split_dir)]) == 0
    props = _spec_props(_read(split_dir / "api.yaml"))
    assert props["service"]["type"] == "object"
    assert props["service"]["properties"]["port"] == {"type": "integer"}


def test_update_api_removes_property_in_flat_promise(flat_dir):
    assert main(["update", "api", "-p", "size-", "-d", str(flat_dir)]) == 0
    promise = _read(flat_dir / "promise.yaml")
    assert "size" not in _spec_props(promise["spec"]["api"])
    assert promise["metadata"]["name"] == "postgresql"


def test_update_api_changes_gvk_and_example_resource(split_dir, capsys):
    code = main(
        ["update", "api", "--group", "myorg.com", "--kind", "Cache", "--version", "v2",
         "--dir", str(split_dir)]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "Example resource updated" in out
    assert "Promise api updated" in out
    crd = _read(split_dir / "api.yaml")
    assert crd["spec"]["group"] == "myorg.com"
    assert crd["spec"]["names"]["kind"] == "Cache"
    assert crd["spec"]["names"]["singular"] == "cache"
    assert crd["spec"]["versions"][0]["name"] == "v2"
    assert crd["metadata"]["name"] == "databases.myorg.com"
    resource = _read(split_dir / "example-resource.yaml")
    assert resource["apiVersion"] == "myorg.com/v2"
    assert resource["kind"] == "Cache"


def test_update_api_invalid_property_format(split_dir, capsys):
    assert main(["update", "api", "-p", "region", "-d", str(split_dir)]) == 1
    assert "invalid property format: region" in capsys.readouterr().err


def test_update_api_unsupported_type(split_dir, capsys):
    assert main(["update", "api", "-p", "region:date", "-d", str(split_dir)]) == 1
    assert "unsupported property type: date" in capsys.readouterr().err


def test_update_api_without_promise_files(tmp_path, capsys):
    assert main(["update", "api", "-p", "region:string", "-d", str(tmp_path)]) == 1
    assert "failed to find api.yaml or promise.yaml" in capsys.readouterr().err


def test_destination_selector_add_and_remove(flat_dir, capsys):
    assert main(["update", "destination-selector", "env=dev", "-d", str(flat_dir)]) == 0
    assert "Promise destination selector updated" in capsys.readouterr().out
    promise = _read(flat_dir / "promise.yaml")
    assert promise["spec"]["destinationSelectors"] == [{"matchLabels": {"env": "dev"}}]

    assert main(["update", "destination-selector", "env-", "-d", str(flat_dir)]) == 0
    promise = _read(flat_dir / "promise.yaml")
    assert promise["spec"]["destinationSelectors"][0]["matchLabels"] == {}


def test_destination_selector_invalid_key(flat_dir, capsys):
    assert main(["update", "destination-selector", "zone", "-d", str(flat_dir)]) == 1
    assert "invalid destination key: zone" in capsys.readouterr().err


def test_destination_selector_without_promise(tmp_path, capsys):
    assert main(["update", "destination-selector", "env=dev", "-d", str(tmp_path)]) == 1
    assert "failed to find promise.yaml in directory" in capsys.readouterr().err


def test_update_dependencies_in_flat_promise(flat_dir, tmp_path_factory, capsys):
    deps_dir = tmp_path_factory.mktemp("deps")
    _write(
        deps_dir / "sa.yaml",
        {"apiVersion": "v1", "kind": "ServiceAccount", "metadata": {"name": "operator-sa"}},
    )
    assert main(["update", "dependencies", str(deps_dir), "-d", str(flat_dir)]) == 0
    assert "Updated promise.yaml" in capsys.readouterr().out
    dependencies = _read(flat_dir / "promise.yaml")["spec"]["dependencies"]
    assert [d["metadata"]["name"] for d in dependencies] == ["operator-sa"]
    assert dependencies[0]["metadata"]["namespace"] == "default"


def test_update_dependencies_missing_path(flat_dir, capsys):
    missing = str(flat_dir / "nowhere")
    assert main(["update", "dependencies", missing, "-d", str(flat_dir)]) == 1
    assert f"failed to stat dependency: {missing}" in capsys.readouterr().err