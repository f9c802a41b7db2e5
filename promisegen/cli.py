"""Command line entry point for updating generated Promises."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

import yaml

from promisegen.api_update import ApiUpdate, update_api
from promisegen.dependencies import DependencyError, update_dependencies
from promisegen.selectors import update_destination_selector

VERSION = "0.4.0"

_UPDATE_API_HELP = """\
Command to update the Promise API.

It can be used to update the API GVK, or to add/remove properties to the API.

The --group, --kind, --version, and --plural flags are used to update the API
GVK. The --property flag is used to add or remove properties from the API. The
format is PROPERTY-NAME:TYPE. Valid types are string, number, integer, object,
and boolean.

For object types, the property name can be nested using the '.' character.

To remove a property, append a '-' to the property name."""

_UPDATE_API_EXAMPLES = """\
examples:
  # add a new property of type string to the API
  kratix update api --property region:string

  # add an integer 'port' property nested into a 'service' object
  kratix update api --property service.port:integer

  # removes the property from the API
  kratix update api --property region-

  # updates the API group and the Kind
  kratix update api --group myorg.com --kind Database

  # updates the version and the plural form
  kratix update api --version v1beta3 --plural mydbs
"""

_SELECTOR_EXAMPLES = """\
examples:
  # adds and updates a destination selector
  kratix update destination-selector env=dev
  # removes an existing destination selector
  kratix update destination-selector zone-
"""

_DEPENDENCIES_EXAMPLES = """\
examples:
  # update promise dependencies with all files in 'local-dir'
  kratix update dependencies path/to/dir/

  # update promise dependencies with single file
  kratix update dependencies path/to/file.yaml
"""

_ROOT_EXAMPLES = """\
examples:
  # To initialize a new promise
  kratix init promise promise-name --group myorg.com --kind Database
"""


def _run_update_api(args: argparse.Namespace) -> None:
    update = ApiUpdate(
        group=args.group,
        kind=args.kind,
        version=args.version,
        plural=args.plural,
        properties=list(args.properties),
    )
    update_api(args.dir, update)
    if update.gvk_needs_update():
        print("Example resource updated")
    print("Promise api updated")


def _run_update_selector(args: argparse.Namespace) -> None:
    update_destination_selector(args.dir, args.selector)
    print("Promise destination selector updated")


def _run_update_dependencies(args: argparse.Namespace) -> None:
    updated = update_dependencies(args.dir, args.path)
    print(f"Updated {updated}")


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the ``kratix`` command."""
    parser = argparse.ArgumentParser(
        prog="kratix",
        description="A CLI tool for Kratix",
        epilog=_ROOT_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"kratix version {VERSION}")
    parser.set_defaults(help_parser=parser, handler=None)
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    update = commands.add_parser(
        "update",
        help="Command to update kratix resources",
        description="Command to update kratix resources",
    )
    update.set_defaults(help_parser=update, handler=None)
    update_commands = update.add_subparsers(dest="update_command", metavar="COMMAND")

    api = update_commands.add_parser(
        "api",
        help="Command to update promise API",
        description=_UPDATE_API_HELP,
        epilog=_UPDATE_API_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    api.add_argument("-d", "--dir", default=".", help="Directory to read Promise from")
    api.add_argument("-g", "--group", default="", help="The API group for the Promise")
    api.add_argument("-k", "--kind", default="", help="The kind to be provided by the Promise")
    api.add_argument("-v", "--version", default="", help="The group version for the Promise")
    api.add_argument("--plural", default="", help="The plural form of the kind")
    api.add_argument(
        "-p",
        "--property",
        dest="properties",
        action="append",
        default=[],
        help="Property of the Promise API to update",
    )
    api.set_defaults(handler=_run_update_api)

    selector = update_commands.add_parser(
        "destination-selector",
        help="Command to update destination selectors",
        description="Command to update destination selectors",
        epilog=_SELECTOR_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    selector.add_argument("selector", metavar="KEY=VALUE")
    selector.add_argument("-d", "--dir", default=".", help="Directory to read Promise from")
    selector.set_defaults(handler=_run_update_selector)

    dependencies = update_commands.add_parser(
        "dependencies",
        help="Commands to update promise dependencies",
        description=(
            "Commands to update promise dependencies, by default dependencies "
            "are stored in the Promise spec.dependencies field"
        ),
        epilog=_DEPENDENCIES_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    dependencies.add_argument("path", metavar="PATH")
    dependencies.add_argument("-d", "--dir", default=".", help="Directory to read Promise from")
    dependencies.set_defaults(handler=_run_update_dependencies)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        code = exc.code
        if code is None or code == 0:
            return 0
        return 1

    if args.handler is None:
        args.help_parser.print_help()
        return 0

    try:
        args.handler(args)
    except (ValueError, OSError, DependencyError, yaml.YAMLError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())