# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Build options shared by every stage of a Sherpa build."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

# ###############
# Public Interface
# ###############


class BundlerType(Enum):
    """Deployment platforms a project can be packaged for."""

    VERCEL = "Vercel"
    EXPRESS_JS = "ExpressJS"


class BundlerOverrides(BaseModel):
    """Per-tool passthrough configuration supplied by the developer.

    Attributes:
        python: Overrides for the Python bundler, merged over its defaults
            (see :data:`sherpa.tooling.bundler.DEFAULT_BUNDLER_OPTIONS`).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    python: dict[str, Any] | None = None


class DeveloperOptions(BaseModel):
    """Developer-only knobs that are not part of the deployment contract."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    bundler: BundlerOverrides | None = None


class BuildOptions(BaseModel):
    """Options for a single build invocation.

    Created once per invocation and passed by reference to every component;
    the model is frozen so no stage can alter what another stage sees.

    Attributes:
        input: Root directory of the project being compiled.
        output: Root directory that receives the emitted artifacts.
        bundler: The deployment target.
        developer: Optional developer overrides.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    input: Path
    output: Path
    bundler: BundlerType
    developer: DeveloperOptions | None = None

    def bundler_overrides(self) -> dict[str, Any]:
        """Return the project-wide Python bundler overrides, or an empty mapping."""
        if self.developer is None or self.developer.bundler is None:
            return {}
        return dict(self.developer.bundler.python or {})
