# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Common interface of deployment targets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from sherpa.model.options import BundlerType
from sherpa.model.project import SERVER_MODULE, Project

# ###############
# Public Interface
# ###############

# Import name of the project server module inside synthesized entrypoints.
SERVER_IMPORT_NAME = Path(SERVER_MODULE).stem


@dataclass(frozen=True)
class Entrypoint:
    """A synthesized entrypoint, ready to be bundled.

    Attributes:
        buffer: Python source of the entrypoint. It is never written to disk.
        output: Path of the artifact to emit.
        resolve: Directory the buffer's imports resolve from.
    """

    buffer: str
    output: Path
    resolve: Path


class Target(ABC):
    """A deployment platform and the way its entrypoints are synthesized."""

    bundler: ClassVar[BundlerType]

    @abstractmethod
    def entrypoints(self, project: Project, output: Path) -> list[Entrypoint]:
        """Return the entrypoints to emit for *project* under *output*."""

    def assets(self, project: Project, output: Path) -> dict[Path, str]:
        """Return additional static files (path → text) the platform needs."""
        return {}
