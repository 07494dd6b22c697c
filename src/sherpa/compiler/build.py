# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project build workflow: check every endpoint module, then emit the target's bundles.

For each module under ``routes/`` (in path order) the driver:

1. Lists the module's exports and picks the HTTP-method handlers.
2. Validates each handler against :data:`~sherpa.model.project.HANDLER_SCHEMA`.
3. Reads the route configuration from the module's default export, running
   the module in the sandbox only when a default export is present.

A module that cannot be analyzed, extracted or validated is reported and
skipped; the remaining modules are still checked so that every diagnostic is
collected before deciding whether to emit. Bundles are emitted only when no
error was found; they are staged under the output directory and moved into
place together, so a failed build leaves earlier artifacts untouched.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import pydantic

from sherpa.logger.log import get_logger
from sherpa.model.messages import Location, Message, Severity, has_errors
from sherpa.model.options import BuildOptions
from sherpa.model.project import (
    HANDLER_SCHEMA,
    HTTP_METHODS,
    ROUTES_DIRECTORY,
    SERVER_MODULE,
    Endpoint,
    EndpointConfig,
    Project,
    ServerConfig,
    route_for,
)
from sherpa.targets import Target, target_for
from sherpa.tooling.analyzer import AnalysisError, get_exported_variable_names, has_default_export
from sherpa.tooling.bundler import BuildError
from sherpa.tooling.emitter import build as emit
from sherpa.tooling.emitter import effective_options
from sherpa.tooling.sandbox import ExtractionError, get_default_export
from sherpa.tooling.validation import type_check

# ###############
# Public Interface
# ###############


class CompilerError(Exception):
    """Raised when a build cannot start (e.g. the input directory is missing)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


@dataclass
class BuildResult:
    """Outcome of a project build.

    Attributes:
        messages: Every diagnostic, in the order found.
        outputs: Artifacts written, in emission order. Empty when errors
            prevented emission.
        project: The checked project, if discovery completed.
    """

    messages: list[Message] = field(default_factory=list)
    outputs: list[Path] = field(default_factory=list)
    project: Project | None = None

    @property
    def has_errors(self) -> bool:
        """Return True if any error-severity message was produced."""
        return has_errors(self.messages)


def discover_endpoints(root: Path) -> list[Path]:
    """Return the endpoint modules of a project in path order.

    Every ``.py`` file under ``routes/`` is an endpoint, except ``__init__.py``
    and files or directories whose name starts with ``_`` or ``.`` (private
    helpers).
    """
    routes_dir = root / ROUTES_DIRECTORY
    if not routes_dir.is_dir():
        return []
    modules = []
    for path in sorted(routes_dir.rglob("*.py")):
        rel = path.relative_to(routes_dir)
        if any(part.startswith(("_", ".")) for part in rel.parts):
            continue
        modules.append(path)
    return modules


def build_project(options: BuildOptions) -> BuildResult:
    """Check the project at ``options.input`` and emit bundles for ``options.bundler``.

    Args:
        options: Options for this build.

    Returns:
        A :class:`BuildResult`. Callers decide what to do with error messages;
        when there are any, nothing was emitted.

    Raises:
        CompilerError: If the input directory does not exist.
    """
    root = Path(options.input)
    if not root.is_dir():
        raise CompilerError(f"Input directory '{root}' does not exist")

    messages: list[Message] = []
    server, config = _load_server(root, messages)

    modules = discover_endpoints(root)
    _log.info("Checking %d endpoint module(s) in %s", len(modules), root)
    endpoints: list[Endpoint] = []
    for module_path in modules:
        endpoint = _check_endpoint(root, module_path, messages)
        if endpoint is not None:
            endpoints.append(endpoint)
    _check_duplicate_routes(endpoints, messages)
    if not modules:
        messages.append(
            Message(
                Severity.WARNING,
                f"No endpoint modules found under '{ROUTES_DIRECTORY}/'",
                Location(file=root / ROUTES_DIRECTORY),
            )
        )

    project = Project(root=root, server=server, config=config, endpoints=endpoints)
    result = BuildResult(messages=messages, project=project)
    if result.has_errors:
        _log.info("Skipping emission: the project has errors")
        return result

    _emit(target_for(options.bundler), project, options, result)
    return result


# ################
# Implementation
# ################

_log = get_logger("compiler")

_ENDPOINT = "Endpoint"
_STAGING_PREFIX = ".sherpa-staging-"


def _error(messages: list[Message], description: str, path: Path, line: int | None = None) -> None:
    messages.append(Message(Severity.ERROR, description, Location(file=path, line=line)))



def _emit(target: Target, project: Project, options: BuildOptions, result: BuildResult) -> None:
    """Write every artifact into a staging directory and move them into place only if all succeed."""
    output = Path(options.output)
    entrypoints = target.entrypoints(project, output)
    assets = target.assets(project, output)
    try:
        allow_overwrite = effective_options(options).allow_overwrite
    except BuildError as exc:
        result.messages.append(Message(Severity.ERROR, str(exc), Location(file=output)))
        return
    if not allow_overwrite:
        for path in [entrypoint.output for entrypoint in entrypoints] + list(assets):
            if path.exists():
                _error(result.messages, f"Output file '{path}' already exists and overwriting is disabled", path)
        if result.has_errors:
            return

    output.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(dir=output, prefix=_STAGING_PREFIX))
    try:
        staged: dict[Path, Path] = {}
        for entrypoint in entrypoints:
            staged_path = staging / entrypoint.output.relative_to(output)
            try:
                emit(entrypoint.buffer, staged_path, resolve=entrypoint.resolve, options=options)
            except BuildError as exc:
                _error(result.messages, str(exc), entrypoint.output)
                continue
            staged[staged_path] = entrypoint.output
        if result.has_errors:
            _log.info("Discarding staged bundles: bundling failed")
            return

        for path, text in assets.items():
            staged_path = staging / path.relative_to(output)
            staged_path.parent.mkdir(parents=True, exist_ok=True)
            staged_path.write_text(text, encoding="utf-8")
            staged[staged_path] = path

        for staged_path, path in staged.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            os.replace(staged_path, path)
            result.outputs.append(path)
        _log.info("Wrote %d artifact(s) to %s", len(result.outputs), output)
    finally:
        shutil.rmtree(staging, ignore_errors=True)

def _load_server(root: Path, messages: list[Message]) -> tuple[Path | None, ServerConfig]:
    """Read the server configuration from ``sherpa_server.py``, if the project has one."""
    path = root / SERVER_MODULE
    if not path.is_file():
        return None, ServerConfig()
    try:
        if not has_default_export(path):
            _error(messages, f"Server module '{SERVER_MODULE}' must define 'default'", path)
            return path, ServerConfig()
        value = get_default_export(path, root=root)
    except (AnalysisError, ExtractionError) as exc:
        _error(messages, str(exc), path)
        return path, ServerConfig()
    try:
        return path, ServerConfig.model_validate(value)
    except pydantic.ValidationError as exc:
        _report_invalid(messages, f"Server module '{SERVER_MODULE}'", exc, path)
        return path, ServerConfig()


def _check_endpoint(root: Path, path: Path, messages: list[Message]) -> Endpoint | None:
    """Run the per-module pipeline; return the endpoint, or None if it has errors."""
    rel = path.relative_to(root).as_posix()
    parts = list(path.relative_to(root).with_suffix("").parts)
    if not all(part.isidentifier() for part in parts):
        _error(messages, f"{_ENDPOINT} '{rel}' is not importable: path segments must be Python identifiers", path)
        return None

    try:
        exported = get_exported_variable_names(path)
    except AnalysisError as exc:
        _error(messages, str(exc), path)
        return None

    handlers = [name for name in exported if name in HTTP_METHODS]
    if not handlers:
        _error(messages, f"{_ENDPOINT} '{rel}' exports no request handler (one of {', '.join(HTTP_METHODS)})", path)
        return None

    module_messages: list[Message] = []
    for name in handlers:
        module_messages.extend(type_check(path, _ENDPOINT, name, HANDLER_SCHEMA))
    messages.extend(module_messages)

    config = EndpointConfig()
    try:
        if has_default_export(path):
            config = EndpointConfig.model_validate(get_default_export(path, root=root))
    except (AnalysisError, ExtractionError) as exc:
        _error(messages, str(exc), path)
        return None
    except pydantic.ValidationError as exc:
        _report_invalid(messages, f"{_ENDPOINT} '{rel}'", exc, path)
        return None

    methods = handlers
    undeclared: list[str] = []
    if config.methods is not None:
        undeclared = [m for m in config.methods if m not in handlers]
        for method in undeclared:
            _error(messages, f"{_ENDPOINT} '{rel}' declares method {method} but exports no handler for it", path)
        methods = [m for m in handlers if m in config.methods]
        if not methods:
            _error(messages, f"{_ENDPOINT} '{rel}' declares no methods to serve", path)

    if has_errors(module_messages) or undeclared or not methods:
        return None

    return Endpoint(
        filepath=path,
        module=".".join(parts),
        route=config.path or route_for(path, root / ROUTES_DIRECTORY),
        methods=methods,
    )


def _check_duplicate_routes(endpoints: list[Endpoint], messages: list[Message]) -> None:
    seen: dict[str, Endpoint] = {}
    for endpoint in endpoints:
        previous = seen.setdefault(endpoint.route, endpoint)
        if previous is not endpoint:
            _error(
                messages,
                f"Route '{endpoint.route}' is served by both '{previous.module}' and '{endpoint.module}'",
                endpoint.filepath,
            )


def _report_invalid(messages: list[Message], subject: str, exc: pydantic.ValidationError, path: Path) -> None:
    for error in exc.errors():
        where = ".".join(str(part) for part in error["loc"]) or "default"
        _error(messages, f"{subject} has an invalid default export: {where}: {error['msg']}", path)
