# promisegen

Tools for working with Kratix Promise directories: update a Promise's API,
its destination selectors and its dependencies from the command line, and
build Promise pieces from Terraform modules, Helm chart values and
Kubernetes operator CRDs from Python.

## Installation

```
pip install promisegen
```

## Command line

The `promisegen` command works on a Promise directory: the current directory
by default, or the one given with `-d`/`--dir`. A directory holds either a
single `promise.yaml`, or split files such as `api.yaml`,
`dependencies.yaml` and `example-resource.yaml`. Errors are printed to
standard error as `Error: ...` and the command exits with status 1.

### Updating the Promise API

```
# add a string property to the API
promisegen update api --property region:string

# add an integer 'port' property nested inside a 'service' object
promisegen update api --property service.port:integer

# remove a property
promisegen update api --property region-

# change the API group and kind
promisegen update api --group myorg.com --kind Database

# change the version and the plural form
promisegen update api --version v1beta3 --plural mydbs
```

The API is read from `api.yaml` when it exists, and otherwise from
`spec.api` in `promise.yaml`. Property types may be `string`, `number`,
`integer`, `object` or `boolean`; `--property` may be given several times.
When the group, kind, version or plural changes, the CRD name becomes
`<plural>.<group>` and `example-resource.yaml` (which must exist) gets the
new `apiVersion` and `kind`.

### Updating destination selectors

```
# add or change a selector label
promisegen update destination-selector env=dev

# remove a selector label
promisegen update destination-selector zone-
```

Only the first entry of `spec.destinationSelectors` in `promise.yaml` is
changed.

### Updating dependencies

```
# use every YAML file under a directory (searched recursively)
promisegen update dependencies path/to/dir/

# use a single file
promisegen update dependencies path/to/file.yaml
```

Every document in files ending in `.yaml` or `.yml` becomes a dependency;
objects without a namespace get `default`. When the directory has a
`promise.yaml` and no `dependencies.yaml`, the dependencies are written into
`spec.dependencies` of `promise.yaml`; otherwise they are written to
`dependencies.yaml`.

## Library

- `promisegen.api_update.update_api(directory, update)` applies an
  `ApiUpdate(group, kind, version, plural, properties)` to the Promise in a
  directory; `update_crd`, `update_gvk` and `update_example_resource` do the
  separate steps.
- `promisegen.selectors.apply_destination_selector(promise, selector)`
  changes a Promise dict; `update_destination_selector(directory, selector)`
  does the same to `promise.yaml`.
- `promisegen.dependencies.build_dependencies(path)` returns the dependencies
  found at a file or directory without writing anything;
  `update_dependencies(directory, dependencies_path)` stores them;
  `copy_files(src, dest)` copies a file or a directory's contents.
- `promisegen.tf_module.get_variables_from_module(module_source, fetch, make_temp_dir)`
  fetches a Terraform module into a temporary directory and reads the
  `variable` blocks of its `variables.tf`. The default fetcher,
  `fetch_module`, handles local directories, GitHub git URLs (as
  `git::https://github.com/owner/repo.git?ref=v1.0.0`, downloaded as an
  archive) and http(s) URLs of zip or tar archives. `parse_variables(text)`
  parses variables HCL directly.
- `promisegen.tf_variables.variables_to_crd_spec_schema(variables)` turns
  `TerraformVariable` objects into a CRD spec schema plus a list of warnings
  for variables that were skipped.
- `promisegen.helm_schema.helm_values_to_schema(values)` builds an OpenAPI
  schema from a Helm chart's values.
- `promisegen.operator_promise` holds the steps for turning an operator's
  CRD into a Promise API: `find_target_crd`, `find_stored_version_index`,
  `operator_env`, `update_operator_crd`, `example_resource` and
  `write_promise_files`.
- `promisegen.workflows` builds resource-configure pipelines
  (`resource_configure_pipelines`, `terraform_module_pipelines`,
  `terraform_module_pipeline_yaml`) and parses
  `LIFECYCLE/ACTION/PIPELINE-NAME` paths with `parse_container_cmd_args`.

Errors are raised as exceptions: `ApiUpdateError`, `SelectorError`,
`DependencyError`, `ModuleError`, `HclParseError`, `OperatorPromiseError`,
`UnsupportedTypeError` and `UnsupportedValueError`.

## What it does not do

- There is no command that creates a new Promise directory. The pieces for
  building a Promise from a Terraform module or an operator are library
  functions; assembling them into a full `promise.yaml` is left to the caller.
- Dependencies are only stored inline or in `dependencies.yaml`; the package
  does not move them into a container image workflow, and has no command for
  adding containers to workflows.
- Git sources other than GitHub cannot be fetched by `fetch_module`.