# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for module path resolution."""

from pathlib import Path

from sherpa.tooling.resolver import SHARED_DEPENDENCY_DIRECTORY, resolve

# ###############
# Helpers
# ###############


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")
    return path


def _layout(tmp_path: Path) -> Path:
    """Return a resolve directory three levels below *tmp_path*."""
    resolve_dir = tmp_path / "a" / "b" / "c"
    resolve_dir.mkdir(parents=True)
    return resolve_dir


# ###############
# Public Interface
# ###############


class TestResolve:
    def test_local_sibling(self, tmp_path: Path) -> None:
        resolve_dir = _layout(tmp_path)
        _touch(resolve_dir / "helpers.py")
        assert resolve("helpers.py", resolve_dir) == resolve_dir / "helpers.py"

    def test_shared_dependency_directory(self, tmp_path: Path) -> None:
        resolve_dir = _layout(tmp_path)
        shared = _touch(tmp_path / SHARED_DEPENDENCY_DIRECTORY / "lib.py")
        assert resolve("lib.py", resolve_dir) == shared

    def test_local_preferred_over_shared(self, tmp_path: Path) -> None:
        resolve_dir = _layout(tmp_path)
        local = _touch(resolve_dir / "lib.py")
        _touch(tmp_path / SHARED_DEPENDENCY_DIRECTORY / "lib.py")
        assert resolve("lib.py", resolve_dir) == local

    def test_missing_returns_none(self, tmp_path: Path) -> None:
        resolve_dir = _layout(tmp_path)
        assert resolve("nowhere.py", resolve_dir) is None

    def test_directories_resolve(self, tmp_path: Path) -> None:
        resolve_dir = _layout(tmp_path)
        (resolve_dir / "pkg").mkdir()
        assert resolve("pkg", resolve_dir) == resolve_dir / "pkg"

    def test_shared_result_is_normalized(self, tmp_path: Path) -> None:
        resolve_dir = _layout(tmp_path)
        _touch(tmp_path / SHARED_DEPENDENCY_DIRECTORY / "lib.py")
        result = resolve("lib.py", resolve_dir)
        assert result is not None
        assert ".." not in result.parts

    def test_repeated_calls_agree(self, tmp_path: Path) -> None:
        resolve_dir = _layout(tmp_path)
        _touch(resolve_dir / "helpers.py")
        assert resolve("helpers.py", resolve_dir) == resolve("helpers.py", resolve_dir)
