# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Logger hierarchy for build progress records.

Every module logs through ``get_logger(<area>)``. The CLI calls
:func:`configure_logging` once per command: progress goes to stderr at INFO
(DEBUG with ``--verbose``), and ``--log-file`` keeps a full DEBUG transcript of
the build regardless of the console level.
"""

from __future__ import annotations

import logging
from pathlib import Path

# ###############
# Public Interface
# ###############

LOGGER_NAME = "sherpa"

CONSOLE_FORMAT = "[sherpa] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``sherpa`` logger, or its child ``sherpa.<name>``."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(LOGGER_NAME).getChild(name)


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Install the console handler and, when *log_file* is given, a DEBUG file transcript.

    Handlers from an earlier call are closed and replaced.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    _drop_handlers(logger)
    logger.propagate = False

    handlers: list[logging.Handler] = [_formatted(logging.StreamHandler(), console_level, CONSOLE_FORMAT)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_formatted(logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, FILE_FORMAT))

    logger.setLevel(min(handler.level for handler in handlers))
    for handler in handlers:
        logger.addHandler(handler)
    return logger


# ################
# Implementation
# ################


def _formatted(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
