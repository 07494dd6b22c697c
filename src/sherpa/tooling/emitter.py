# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Emission of the final bundled artifact for a synthesized entrypoint."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sherpa.logger.log import get_logger
from sherpa.model.options import BuildOptions
from sherpa.tooling.bundler import (
    ATTRIBUTION,
    DEFAULT_BUNDLER_OPTIONS,
    BundlerOptions,
    StdinOptions,
    bundle,
    merge_bundler_options,
)
from sherpa.tooling.environment import get_environment_variables

# ###############
# Public Interface
# ###############

# The runtime's process-environment accessor, replaced at build time.
ENVIRONMENT_ACCESSOR = "os.environ"


def effective_options(
    options: BuildOptions | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> BundlerOptions:
    """Return the bundler options used by :func:`build`.

    Layers, lowest to highest precedence: :data:`DEFAULT_BUNDLER_OPTIONS`,
    the project-wide ``developer.bundler.python`` overrides, then the per-call
    *overrides*. The environment substitution is always added on top and the
    footer always ends with the attribution marker.

    Raises:
        BuildError: If the combined options are invalid.
    """
    project = options.bundler_overrides() if options is not None else {}
    merged = merge_bundler_options(DEFAULT_BUNDLER_OPTIONS, project, overrides or {})
    return merged.model_copy(
        update={
            "define": {**merged.define, **environment_define(options)},
            "footer": {**merged.footer, "py": _with_attribution(merged.footer.get("py", ""))},
        }
    )


def environment_define(options: BuildOptions | None) -> dict[str, str]:
    """Return the substitution rule freezing the environment of *options* into a bundle."""
    return {ENVIRONMENT_ACCESSOR: json.dumps(get_environment_variables(options), ensure_ascii=False)}


def build(
    buffer: str,
    output: str | Path,
    *,
    resolve: str | Path | None = None,
    options: BuildOptions | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Path:
    """Bundle an in-memory entry source and write it to *output*.

    The buffer is compiled as if it were a file in *resolve*, so synthesized
    entrypoint code never written to disk can import project modules with
    working relative paths.

    Args:
        buffer: Python source of the entry.
        output: Path of the artifact to write.
        resolve: Directory local imports are resolved from.
        options: Build options supplying project overrides and environment.
        overrides: Per-call bundler overrides (highest precedence).

    Returns:
        The path of the written artifact. The file is valid only once this
        function returns.

    Raises:
        BuildError: On any compile-time failure.
    """
    output_path = Path(output)
    effective = effective_options(options, overrides)
    stdin = StdinOptions(
        contents=buffer,
        resolve_dir=None if resolve is None else Path(resolve),
        sourcefile=f"<entry:{output_path.name}>",
    )
    bundle(effective, stdin=stdin, outfile=output_path)
    _log.info("Emitted %s", output_path)
    return output_path


# ################
# Implementation
# ################

_log = get_logger("emitter")


def _with_attribution(footer: str) -> str:
    if footer.rstrip().endswith(ATTRIBUTION):
        return footer
    return f"{footer.rstrip()}\n{ATTRIBUTION}" if footer.strip() else ATTRIBUTION
