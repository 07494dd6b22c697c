# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Module path resolution across the local tree and the shared dependency directory."""

from __future__ import annotations

import os
from pathlib import Path

# ###############
# Public Interface
# ###############

# Name of the shared dependency-install directory (``pip install --target``).
SHARED_DEPENDENCY_DIRECTORY = "site-packages"


def resolve(path: str | Path, resolve_dir: str | Path = "") -> Path | None:
    """Resolve *path* to an existing file or directory.

    Candidates are tried in order and the first that exists wins:

    1. ``resolve_dir / path`` (a local sibling);
    2. ``resolve_dir / ../../.. / site-packages / path`` (the shared
       dependency-install directory three levels above *resolve_dir*).

    Only existence checks are performed, so the result is deterministic for
    an unchanged filesystem.

    Args:
        path: Relative path of the module to find (e.g. ``"helpers.py"``).
        resolve_dir: Directory the lookup is relative to.

    Returns:
        The matching path, or ``None`` when neither candidate exists.
    """
    base = Path(resolve_dir)
    for candidate in (base / path, base / _SHARED_ASCENT / SHARED_DEPENDENCY_DIRECTORY / path):
        if candidate.exists():
            return Path(os.path.normpath(candidate))
    return None


# ################
# Implementation
# ################

_SHARED_ASCENT = Path("..", "..", "..")
