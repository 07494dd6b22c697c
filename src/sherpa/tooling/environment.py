# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Environment variables frozen into bundles, read from the project's ``.env`` files."""

from __future__ import annotations

from pathlib import Path

from dotenv import dotenv_values

from sherpa.model.options import BuildOptions

# ###############
# Public Interface
# ###############

ENV_FILE = ".env"


def environment_files(options: BuildOptions) -> list[Path]:
    """Return the ``.env`` files consulted for *options*, lowest precedence first.

    The shared ``.env`` is followed by a target-specific file named after the
    bundler (e.g. ``.env.vercel``).
    """
    root = Path(options.input)
    return [root / ENV_FILE, root / f"{ENV_FILE}.{options.bundler.value.lower()}"]


def get_environment_variables(options: BuildOptions | None) -> dict[str, str]:
    """Return the environment variables for a build.

    Missing files are skipped and keys declared without a value are dropped.
    Without options there is no project to read from and the result is empty.
    """
    if options is None:
        return {}
    variables: dict[str, str] = {}
    for env_file in environment_files(options):
        if not env_file.is_file():
            continue
        for key, value in dotenv_values(env_file).items():
            if value is not None:
                variables[key] = value
    return variables
