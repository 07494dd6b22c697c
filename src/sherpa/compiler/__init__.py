# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project build pipeline: endpoint discovery, checking, and per-target emission."""

from sherpa.compiler.build import BuildResult, CompilerError, build_project, discover_endpoints

__all__ = [
    "build_project",
    "discover_endpoints",
    "BuildResult",
    "CompilerError",
]
