# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Diagnostic messages produced while checking a project."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# ###############
# Public Interface
# ###############


class Severity(Enum):
    """How serious a diagnostic is."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Location:
    """A position in a source file.

    Attributes:
        file: Path of the source file.
        line: 1-based line number, if known.
        column: 0-based column offset, if known.
    """

    file: Path
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return str(self.file)
        if self.column is None:
            return f"{self.file}:{self.line}"
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Message:
    """A non-fatal, severity-tagged finding.

    Messages are values: checks return them in order and leave the decision
    of whether to stop to the caller.

    Attributes:
        severity: How serious the finding is.
        description: Human-readable description of the finding.
        location: Where the finding applies, if known.
    """

    severity: Severity
    description: str
    location: Location | None = None

    @property
    def is_error(self) -> bool:
        """Return True if this message has error severity."""
        return self.severity is Severity.ERROR


def has_errors(messages: list[Message]) -> bool:
    """Return True if any message in *messages* is an error."""
    return any(m.is_error for m in messages)
