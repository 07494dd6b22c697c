# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Progress logging and diagnostic display."""

from sherpa.logger.console import format_message, print_messages, summarize
from sherpa.logger.log import configure_logging, get_logger

__all__ = [
    "get_logger",
    "configure_logging",
    "format_message",
    "print_messages",
    "summarize",
]
