# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the Sherpa CLI entry point."""

import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from sherpa.cli.main import main
from sherpa.logger.log import LOGGER_NAME

# ###############
# Helpers
# ###############


def _run(monkeypatch: pytest.MonkeyPatch, *args: str) -> int:
    monkeypatch.setattr(sys, "argv", ["sherpa", *args])
    with pytest.raises(SystemExit) as exc_info:
        main()
    return exc_info.value.code


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Drop the handlers ``build`` installs so later tests do not write to a closed stream."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


# ###############
# Public Interface
# ###############


def test_main_no_args_prints_help_and_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    """main() with no subcommand prints help and exits with code 0."""
    assert _run(monkeypatch) == 0


# -------- init tests --------


def test_init_creates_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """init writes sherpa.yaml, the server module and an example endpoint."""
    assert _run(monkeypatch, "init", str(tmp_path), "--bundler", "ExpressJS") == 0
    assert "bundler: ExpressJS" in (tmp_path / "sherpa.yaml").read_text()
    assert (tmp_path / "sherpa_server.py").exists()
    assert (tmp_path / "routes" / "index.py").exists()


def test_init_default_directory_uses_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert _run(monkeypatch, "init") == 0
    assert "bundler: Vercel" in (tmp_path / "sherpa.yaml").read_text()


def test_init_fails_if_project_already_exists(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "sherpa.yaml").write_text("bundler: Vercel\n")
    assert _run(monkeypatch, "init", str(tmp_path)) == 1


def test_init_keeps_existing_modules(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "routes").mkdir()
    (tmp_path / "routes" / "index.py").write_text("def GET(request):\n    return 'mine'\n")
    assert _run(monkeypatch, "init", str(tmp_path)) == 0
    assert "mine" in (tmp_path / "routes" / "index.py").read_text()


def test_init_fails_if_directory_does_not_exist(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run(monkeypatch, "init", str(tmp_path / "nonexistent")) == 1


# -------- build tests --------


def test_init_then_build(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A freshly initialized project builds cleanly."""
    assert _run(monkeypatch, "init", str(tmp_path), "--bundler", "ExpressJS") == 0
    assert _run(monkeypatch, "build", str(tmp_path)) == 0
    assert (tmp_path / ".sherpa" / "server.py").exists()


def test_build_vercel_into_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run(monkeypatch, "init", str(tmp_path)) == 0
    assert _run(monkeypatch, "build", str(tmp_path), "--output", "dist") == 0
    assert (tmp_path / "dist" / ".vercel" / "output" / "functions" / "index.func" / "index.py").exists()


def test_build_bundler_flag_overrides_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run(monkeypatch, "init", str(tmp_path)) == 0
    assert _run(monkeypatch, "build", str(tmp_path), "--bundler", "ExpressJS") == 0
    assert (tmp_path / ".sherpa" / "server.py").exists()


def test_build_writes_log_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """--log-file keeps a transcript of the build, including DEBUG records."""
    assert _run(monkeypatch, "init", str(tmp_path), "--bundler", "ExpressJS") == 0
    log_file = tmp_path / "logs" / "build.log"
    assert _run(monkeypatch, "build", str(tmp_path), "--log-file", str(log_file)) == 0
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.flush()
    transcript = log_file.read_text(encoding="utf-8")
    assert "Emitted" in transcript
    assert "DEBUG" in transcript


def test_build_reports_errors(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "sherpa.yaml").write_text("bundler: ExpressJS\n")
    (tmp_path / "routes").mkdir()
    (tmp_path / "routes" / "index.py").write_text("def GET():\n    pass\n")
    assert _run(monkeypatch, "build", str(tmp_path), "--no-color") == 1
    err = capsys.readouterr().err
    assert "error: Endpoint 'index.py': 'GET' is missing required parameter 'request'" in err
    assert "Build failed: 1 error(s), 0 warning(s)." in err
    assert not (tmp_path / ".sherpa").exists()


def test_build_invalid_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "sherpa.yaml").write_text("bundler: Netlify\n")
    assert _run(monkeypatch, "build", str(tmp_path)) == 1


def test_build_without_bundler(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run(monkeypatch, "build", str(tmp_path)) == 1


def test_build_fails_if_directory_does_not_exist(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run(monkeypatch, "build", str(tmp_path / "nonexistent"), "--bundler", "Vercel") == 1
