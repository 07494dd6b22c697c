# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the Sherpa command-line interface."""

import argparse
import sys
from pathlib import Path

from sherpa.compiler.build import CompilerError, build_project
from sherpa.logger import configure_logging, print_messages, summarize
from sherpa.model.options import BundlerType
from sherpa.model.project import ROUTES_DIRECTORY, SERVER_MODULE
from sherpa.workspace.config import CONFIG_FILE, WorkspaceConfigError, load_build_options

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the Sherpa CLI."""
    parser = argparse.ArgumentParser(
        prog="sherpa",
        description="Sherpa - compile Python microservice endpoints into deployable bundles",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # init subcommand
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a new Sherpa project",
        description="Create a sherpa.yaml, a server module and an example endpoint.",
    )
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to initialize the project in (default: current directory)",
    )
    init_parser.add_argument(
        "--bundler",
        choices=[b.value for b in BundlerType],
        default=BundlerType.VERCEL.value,
        help="Deployment target written to sherpa.yaml (default: Vercel)",
    )

    # build subcommand
    build_parser = subparsers.add_parser(
        "build",
        help="Check the project and emit deployable bundles",
        description="Validate every endpoint module and emit bundles for the configured target.",
    )
    build_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory containing the Sherpa project (default: current directory)",
    )
    build_parser.add_argument(
        "--output",
        help="Output directory (default: the 'output' setting, else the project directory)",
    )
    build_parser.add_argument(
        "--bundler",
        choices=[b.value for b in BundlerType],
        help="Deployment target (default: the 'bundler' setting)",
    )
    build_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every bundling step",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write a DEBUG transcript of the build to this file",
    )
    build_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Print diagnostics without colors",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################

_EXAMPLE_SERVER = '''\
"""Server configuration: ``context`` is passed to every handler."""

default = {
    "context": {},
}
'''

_EXAMPLE_ENDPOINT = '''\
"""Serves ``/``."""


def GET(request, context):
    return {"message": "Hello from Sherpa"}
'''


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "build":
        return _cmd_build(args)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the init subcommand."""
    directory = Path(args.directory).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return 1

    config_file = directory / CONFIG_FILE
    if config_file.exists():
        print(f"Error: project already exists at '{config_file}'.", file=sys.stderr)
        return 1

    config_file.write_text(
        "# Sherpa Project Configuration\n"
        f"bundler: {args.bundler}\n"
        "output: .\n",
        encoding="utf-8",
    )
    server_file = directory / SERVER_MODULE
    if not server_file.exists():
        server_file.write_text(_EXAMPLE_SERVER, encoding="utf-8")
    routes_dir = directory / ROUTES_DIRECTORY
    routes_dir.mkdir(exist_ok=True)
    endpoint_file = routes_dir / "index.py"
    if not endpoint_file.exists():
        endpoint_file.write_text(_EXAMPLE_ENDPOINT, encoding="utf-8")

    print(f"Initialized Sherpa project at '{directory}'.")
    return 0


def _cmd_build(args: argparse.Namespace) -> int:
    """Handle the build subcommand."""
    configure_logging(verbose=args.verbose, log_file=args.log_file)
    directory = Path(args.directory).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return 1

    try:
        options = load_build_options(directory, output=args.output, bundler=args.bundler)
    except WorkspaceConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        result = build_project(options)
    except CompilerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print_messages(result.messages, color=not args.no_color)
    if result.has_errors:
        print(f"Build failed: {summarize(result.messages)}.", file=sys.stderr)
        return 1

    print(f"Built {len(result.outputs)} file(s) for {options.bundler.value} into '{options.output}'.")
    return 0


if __name__ == "__main__":
    main()
