import pytest

from promisegen.tf_variables import (
    TerraformVariable,
    UnsupportedTypeError,
    infer_type_from_default,
    terraform_type_to_crd,
    variables_to_crd_spec_schema,
)


def test_supported_types_generate_all_properties():
    variables = [
        TerraformVariable("stringVar", "string"),
        TerraformVariable("numberVar", "number"),
        TerraformVariable("boolVar", "bool"),
        TerraformVariable("listStringVar", "list(string)"),
        TerraformVariable("mapStringVar", "map(string)"),
        TerraformVariable("listObjectVar", "list(object({ key1 = string, key2 = number }))"),
        TerraformVariable("complexMap", "map(map(list(string)))"),
        TerraformVariable("complexMap2", "map(object({ key1 = string, key2 = bool }))"),
        TerraformVariable(
            "deeplyNested",
            "list(object({ name = string, secret = set(object({ secret_name = string, items = map(string) })) }))",
        ),
        TerraformVariable(
            "probe",
            "object({ failure_threshold = optional(number, null), initial_delay_seconds = optional(number, null), http_get = optional(object({ path = optional(string), http_headers = optional(list(object({ name = string, value = string })), null) }), null) })",
        ),
    ]
    schema, warnings = variables_to_crd_spec_schema(variables)
    assert warnings == []
    assert len(schema["properties"]) == len(variables)


def test_types_inferred_from_defaults():
    variables = [
        TerraformVariable("defaultList", default=[1, 2, 3]),
        TerraformVariable("defaultString", default="example"),
        TerraformVariable("defaultNumber", default=42),
        TerraformVariable("defaultBoolean", default=True),
    ]
    schema, warnings = variables_to_crd_spec_schema(variables)
    props = schema["properties"]
    assert warnings == []
    assert props["defaultList"]["type"] == "array"
    assert props["defaultList"]["items"]["type"] == "number"
    assert props["defaultString"]["type"] == "string"
    assert props["defaultNumber"]["type"] == "number"
    assert props["defaultBoolean"]["type"] == "boolean"


def test_warnings_for_uninferrable_defaults():
    variables = [
        TerraformVariable("unknownVar", default=None),
        TerraformVariable("defaultMap", default={"key": "value"}),
    ]
    _, warnings = variables_to_crd_spec_schema(variables)
    assert sorted(warnings) == sorted(
        [
            "warning: Type not set for variable unknownVar and cannot be inferred from the default value, skipping",
            "warning: Type not set for variable defaultMap and cannot be inferred from the default value, skipping",
        ]
    )


def test_unsupported_type_warning_and_description():
    variables = [
        TerraformVariable("tags", "set(string)"),
        TerraformVariable("region", "string", description="The region"),
    ]
    schema, warnings = variables_to_crd_spec_schema(variables)
    assert warnings == [
        "warning: unable to automatically convert tags of type set(string) into CRD, skipping"
    ]
    assert schema["properties"] == {
        "region": {"type": "string", "description": "The region"}
    }


def test_map_with_unsupported_inner_preserves_unknown_fields():
    assert terraform_type_to_crd("map(set(string))") == {
        "type": "object",
        "x-kubernetes-preserve-unknown-fields": True,
    }


def test_map_of_strings():
    assert terraform_type_to_crd(" map(string) ") == {
        "type": "object",
        "additionalProperties": {"type": "string"},
    }


def test_list_with_unsupported_inner_raises():
    with pytest.raises(UnsupportedTypeError):
        terraform_type_to_crd("list(set(string))")


@pytest.mark.parametrize(
    "value, expected",
    [("a", "string"), (1.5, "number"), (False, "boolean"), (["x"], "list(string)"),
     ([], "list"), (None, ""), ({}, "")],
)
def test_infer_type_from_default(value, expected):
    assert infer_type_from_default(value) == expected