# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Reads a module's default export by running its bundled code in a separate process.

The module and its local imports are bundled into one script in the build
process. A fresh interpreter (``spawn`` start method) then executes the script
with a globals mapping holding only the builtins, a ``process`` snapshot of
the build process and an empty ``module["exports"]`` record. Whatever the user
code changes (environment variables, builtins, imported modules) dies with
that interpreter; only the pickled default export is sent back.
"""

from __future__ import annotations

import builtins
import multiprocessing
import os
import pickle
import sys
from multiprocessing.connection import Connection
from pathlib import Path
from types import MappingProxyType, SimpleNamespace
from typing import Any

from sherpa.logger.log import get_logger
from sherpa.tooling.analyzer import DEFAULT_EXPORT
from sherpa.tooling.bundler import BuildError, BundlerOptions, StdinOptions, bundle

# ###############
# Public Interface
# ###############

SANDBOX_MODULE_NAME = "__sherpa_sandbox__"

# Seconds a module may run before its extraction is abandoned.
EXTRACTION_TIMEOUT = 60.0


class ExtractionError(Exception):
    """Raised when a module cannot be compiled or executed to read its default export."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


def get_default_export(
    filepath: str | Path,
    *,
    root: str | Path | None = None,
    timeout: float | None = EXTRACTION_TIMEOUT,
) -> Any:
    """Return the runtime value of a module's ``default`` binding.

    Callers should check :func:`sherpa.tooling.analyzer.has_default_export`
    first; a module without a default export fails.

    Args:
        filepath: The module to run.
        root: Project root. When given and *filepath* lies under it, the module
            is bundled under its dotted name so that relative imports and
            imports rooted at the project resolve as they do in the deployed
            bundle. Otherwise imports resolve from the module's own directory.
        timeout: Seconds to wait for the module to finish, or ``None`` to
            wait indefinitely.

    Returns:
        A copy of the value bound to ``default`` after the module ran. The
        value must be picklable (plain data such as route or server config).

    Raises:
        ExtractionError: If bundling fails, the code raises or exits, the run
            times out, no default export is produced, or the default export
            cannot be transferred out of the sandbox.
    """
    path = Path(filepath)
    try:
        code = _compile_script(path, None if root is None else Path(root))
    except BuildError as exc:
        raise ExtractionError(f"Cannot compile '{path}': {exc}") from exc

    status, payload = _run_isolated(code, str(path), timeout)
    if status == "raised":
        raise ExtractionError(f"Executing '{path}' raised {payload}")
    if status == "missing":
        raise ExtractionError(f"Module '{path}' has no default export")
    if status == "unpicklable":
        raise ExtractionError(f"Default export of '{path}' cannot leave the sandbox: {payload}")
    if status != "ok":
        raise ExtractionError(f"Executing '{path}' failed: {payload}")

    try:
        value = pickle.loads(payload)
    except Exception as exc:
        raise ExtractionError(f"Default export of '{path}' cannot be restored: {exc}") from exc
    _log.debug("Extracted default export of %s (%s)", path, type(value).__name__)
    return value


# ################
# Implementation
# ################

_log = get_logger("sandbox")

_JOIN_TIMEOUT = 2.0

# Bundled for reading only: no minification and no environment substitution,
# so user code observes the build process environment through ``process``.
_SANDBOX_OPTIONS = BundlerOptions(format="exports", bundle=True, tree_shaking=True, minify=False)


def _compile_script(path: Path, root: Path | None) -> str:
    module_name = _module_name(path, root)
    if root is None or module_name is None:
        return bundle(_SANDBOX_OPTIONS, entry_point=path)
    entry = StdinOptions(
        contents=f"from {module_name} import {DEFAULT_EXPORT}\n",
        resolve_dir=root,
        sourcefile=str(path),
    )
    return bundle(_SANDBOX_OPTIONS, stdin=entry)


def _module_name(path: Path, root: Path | None) -> str | None:
    if root is None:
        return None
    try:
        rel = path.resolve().relative_to(root.resolve())
    except ValueError:
        return None
    parts = list(rel.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    if not parts or not all(part.isidentifier() for part in parts):
        return None
    return ".".join(parts)


def _run_isolated(code: str, filename: str, timeout: float | None) -> tuple[str, Any]:
    """Execute *code* in a spawned interpreter and return its ``(status, payload)`` report."""
    ctx = multiprocessing.get_context("spawn")
    reader, writer = ctx.Pipe(duplex=False)
    process = ctx.Process(
        target=_extraction_worker,
        args=(writer, code, filename, _process_snapshot()),
        daemon=True,
    )
    process.start()
    writer.close()
    try:
        if not reader.poll(timeout):
            return "timeout", f"no result after {timeout:g} seconds"
        return reader.recv()
    except EOFError:
        process.join(_JOIN_TIMEOUT)
        return "crashed", f"the sandbox process exited with code {process.exitcode}"
    finally:
        reader.close()
        process.join(_JOIN_TIMEOUT)
        if process.is_alive():
            process.terminate()
            process.join(_JOIN_TIMEOUT)


def _extraction_worker(conn: Connection, code: str, filename: str, snapshot: dict[str, Any]) -> None:
    """Sandbox process: run the bundle and send back the pickled default export."""
    context: dict[str, Any] = {
        "__builtins__": builtins,
        "__name__": SANDBOX_MODULE_NAME,
        "process": _process_handle(snapshot),
        "module": {"exports": {}},
    }
    try:
        try:
            exec(compile(code, filename, "exec"), context)
        except (Exception, SystemExit) as exc:
            conn.send(("raised", f"{type(exc).__name__}: {exc}"))
            return
        record = context.get("module")
        exports = record.get("exports", {}) if isinstance(record, dict) else {}
        if DEFAULT_EXPORT not in exports:
            conn.send(("missing", None))
            return
        try:
            payload = pickle.dumps(exports[DEFAULT_EXPORT])
        except Exception as exc:
            conn.send(("unpicklable", f"{type(exc).__name__}: {exc}"))
            return
        conn.send(("ok", payload))
    finally:
        context.clear()
        conn.close()


def _process_snapshot() -> dict[str, Any]:
    """Picklable description of the build process, taken at call time."""
    return {
        "env": dict(os.environ),
        "argv": list(sys.argv),
        "cwd": os.getcwd(),
        "platform": sys.platform,
        "version": sys.version,
    }


def _process_handle(snapshot: dict[str, Any]) -> SimpleNamespace:
    """Read-only view of the build process visible to sandboxed code."""
    return SimpleNamespace(
        env=MappingProxyType(snapshot["env"]),
        argv=tuple(snapshot["argv"]),
        cwd=snapshot["cwd"],
        platform=snapshot["platform"],
        version=snapshot["version"],
    )
