# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the project configuration module."""

from pathlib import Path

import pytest

from sherpa.model.options import BundlerType
from sherpa.workspace import (
    CONFIG_FILE,
    ProjectConfig,
    WorkspaceConfigError,
    load_build_options,
    load_project_config,
)

# ###############
# Helpers
# ###############


def _write_config(tmp_path: Path, content: str) -> Path:
    """Write a project config file and return its path."""
    config_file = tmp_path / CONFIG_FILE
    config_file.write_text(content, encoding="utf-8")
    return config_file


# ###############
# Normal Cases
# ###############


def test_full_config(tmp_path: Path) -> None:
    """All known keys are parsed."""
    config_file = _write_config(
        tmp_path,
        "bundler: Vercel\noutput: dist\ndeveloper:\n  bundler:\n    python:\n      minify: false\n",
    )
    config = load_project_config(config_file)
    assert config == ProjectConfig(
        bundler=BundlerType.VERCEL,
        output="dist",
        developer={"bundler": {"python": {"minify": False}}},
    )


def test_empty_config(tmp_path: Path) -> None:
    """An empty file yields the defaults."""
    config = load_project_config(_write_config(tmp_path, ""))
    assert config == ProjectConfig()


def test_bundler_is_case_insensitive(tmp_path: Path) -> None:
    config = load_project_config(_write_config(tmp_path, "bundler: expressjs\n"))
    assert config.bundler is BundlerType.EXPRESS_JS


def test_build_options_from_file(tmp_path: Path) -> None:
    """Options use the file's bundler and resolve the output against the root."""
    _write_config(tmp_path, "bundler: ExpressJS\noutput: dist\n")
    options = load_build_options(tmp_path)
    assert options.input == tmp_path
    assert options.output == tmp_path / "dist"
    assert options.bundler is BundlerType.EXPRESS_JS
    assert options.developer is None


def test_build_options_default_output_is_root(tmp_path: Path) -> None:
    _write_config(tmp_path, "bundler: Vercel\n")
    assert load_build_options(tmp_path).output == tmp_path


def test_build_options_flags_override_file(tmp_path: Path) -> None:
    _write_config(tmp_path, "bundler: Vercel\noutput: dist\n")
    absolute = tmp_path / "elsewhere"
    options = load_build_options(tmp_path, output=absolute, bundler="ExpressJS")
    assert options.output == absolute
    assert options.bundler is BundlerType.EXPRESS_JS


def test_build_options_without_config_file(tmp_path: Path) -> None:
    options = load_build_options(tmp_path, bundler=BundlerType.VERCEL)
    assert options.bundler is BundlerType.VERCEL


def test_build_options_developer_overrides(tmp_path: Path) -> None:
    _write_config(tmp_path, "bundler: Vercel\ndeveloper:\n  bundler:\n    python:\n      minify: false\n")
    assert load_build_options(tmp_path).bundler_overrides() == {"minify": False}


# ###############
# Error Cases
# ###############


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="not found"):
        load_project_config(tmp_path / CONFIG_FILE)


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="Invalid YAML"):
        load_project_config(_write_config(tmp_path, "bundler: [unclosed\n"))


def test_non_mapping_raises(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="must be a YAML mapping"):
        load_project_config(_write_config(tmp_path, "- Vercel\n"))


def test_unknown_key_raises(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="unknown field"):
        load_project_config(_write_config(tmp_path, "bundler: Vercel\nport: 80\n"))


def test_unknown_bundler_raises(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="must be one of Vercel, ExpressJS"):
        load_project_config(_write_config(tmp_path, "bundler: Netlify\n"))


def test_non_string_output_raises(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="'output' must be a string"):
        load_project_config(_write_config(tmp_path, "output: 3\n"))


def test_missing_bundler_raises(tmp_path: Path) -> None:
    _write_config(tmp_path, "output: dist\n")
    with pytest.raises(WorkspaceConfigError, match="No bundler configured"):
        load_build_options(tmp_path)


def test_invalid_developer_section_raises(tmp_path: Path) -> None:
    _write_config(tmp_path, "bundler: Vercel\ndeveloper:\n  linter: true\n")
    with pytest.raises(WorkspaceConfigError, match="invalid 'developer' section"):
        load_build_options(tmp_path)
