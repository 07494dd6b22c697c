# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Human-readable rendering of diagnostic messages."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from yachalk import chalk

from sherpa.model.messages import Message, Severity

# ###############
# Public Interface
# ###############


def format_message(message: Message, *, color: bool = True) -> str:
    """Format one message as ``location: severity: description``."""
    label = message.severity.value
    if color:
        label = _PAINTERS[message.severity](label)
    prefix = f"{message.location}: " if message.location is not None else ""
    return f"{prefix}{label}: {message.description}"


def print_messages(
    messages: Iterable[Message],
    *,
    stream: TextIO | None = None,
    color: bool = True,
) -> None:
    """Print *messages* in the order given, one per line."""
    out = stream if stream is not None else sys.stderr
    for message in messages:
        print(format_message(message, color=color), file=out)


def summarize(messages: list[Message]) -> str:
    """Return a one-line count of errors and warnings."""
    errors = sum(1 for m in messages if m.severity is Severity.ERROR)
    warnings = sum(1 for m in messages if m.severity is Severity.WARNING)
    return f"{errors} error(s), {warnings} warning(s)"


# ################
# Implementation
# ################

_PAINTERS = {
    Severity.ERROR: chalk.red,
    Severity.WARNING: chalk.yellow,
    Severity.INFO: chalk.blue,
}
