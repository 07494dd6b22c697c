# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the Sherpa project configuration file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pydantic
import yaml

from sherpa.model.options import BuildOptions, BundlerType

# ###############
# Public Interface
# ###############

CONFIG_FILE = "sherpa.yaml"


class WorkspaceConfigError(Exception):
    """Raised when a project configuration file is invalid or cannot be loaded."""


@dataclass
class ProjectConfig:
    """The parsed contents of ``sherpa.yaml``.

    Attributes:
        bundler: Deployment target, if configured.
        output: Output directory relative to the project root, if configured.
        developer: Developer overrides (``bundler.python`` passthrough options).
    """

    bundler: BundlerType | None = None
    output: str | None = None
    developer: dict[str, Any] = field(default_factory=dict)


def load_project_config(path: Path) -> ProjectConfig:
    """Load and parse a Sherpa project configuration file.

    Args:
        path: Path to the ``sherpa.yaml`` file.

    Returns:
        A ProjectConfig instance populated from the file.

    Raises:
        WorkspaceConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Project config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read project config file: {exc}") from exc

    return _parse_project_config(text, source_label=str(path))


def load_build_options(
    directory: Path,
    *,
    output: str | Path | None = None,
    bundler: BundlerType | str | None = None,
) -> BuildOptions:
    """Assemble the build options for the project in *directory*.

    Values from ``sherpa.yaml`` (when present) are used unless *output* or
    *bundler* are given explicitly. A relative output directory is taken
    relative to the project root; the default output is the root itself.

    Raises:
        WorkspaceConfigError: If the configuration is invalid or no bundler is
            configured.
    """
    config_file = directory / CONFIG_FILE
    config = load_project_config(config_file) if config_file.exists() else ProjectConfig()

    target = _parse_bundler(bundler, "bundler") if bundler is not None else config.bundler
    if target is None:
        raise WorkspaceConfigError(
            f"No bundler configured: set 'bundler' in {CONFIG_FILE} or pass --bundler "
            f"({', '.join(b.value for b in BundlerType)})"
        )

    output_dir = Path(output) if output is not None else Path(config.output or ".")
    if not output_dir.is_absolute():
        output_dir = directory / output_dir

    try:
        return BuildOptions(
            input=directory,
            output=output_dir,
            bundler=target,
            developer=config.developer or None,
        )
    except pydantic.ValidationError as exc:
        raise WorkspaceConfigError(f"{config_file}: invalid 'developer' section: {exc}") from exc


# ################
# Implementation
# ################

_KNOWN_KEYS = frozenset({"bundler", "output", "developer"})


def _parse_project_config(text: str, source_label: str = "<string>") -> ProjectConfig:
    """Parse project config YAML text into a ProjectConfig.

    Args:
        text: Raw YAML content.
        source_label: Human-readable label used in error messages (e.g. the file path).

    Returns:
        A ProjectConfig instance.

    Raises:
        WorkspaceConfigError: If the YAML is invalid or a field has the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return ProjectConfig()
    if not isinstance(data, dict):
        raise WorkspaceConfigError(f"{source_label}: project config must be a YAML mapping")

    unknown = sorted(str(key) for key in data if key not in _KNOWN_KEYS)
    if unknown:
        raise WorkspaceConfigError(f"{source_label}: unknown field(s): {', '.join(unknown)}")

    bundler = None
    if "bundler" in data:
        bundler = _parse_bundler(data["bundler"], f"{source_label}: 'bundler'")

    output = None
    if "output" in data:
        output = data["output"]
        if not isinstance(output, str):
            raise WorkspaceConfigError(f"{source_label}: 'output' must be a string")

    developer: dict[str, Any] = {}
    if "developer" in data:
        developer = data["developer"] or {}
        if not isinstance(developer, dict):
            raise WorkspaceConfigError(f"{source_label}: 'developer' must be a YAML mapping")

    return ProjectConfig(bundler=bundler, output=output, developer=developer)


def _parse_bundler(value: object, location: str) -> BundlerType:
    """Return the BundlerType named by *value* (case-insensitive)."""
    if isinstance(value, BundlerType):
        return value
    if isinstance(value, str):
        for bundler in BundlerType:
            if bundler.value.lower() == value.lower():
                return bundler
    choices = ", ".join(b.value for b in BundlerType)
    raise WorkspaceConfigError(f"{location} must be one of {choices}, got {value!r}")
