# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project configuration (``sherpa.yaml``)."""

from sherpa.workspace.config import (
    CONFIG_FILE,
    ProjectConfig,
    WorkspaceConfigError,
    load_build_options,
    load_project_config,
)

__all__ = [
    "CONFIG_FILE",
    "ProjectConfig",
    "WorkspaceConfigError",
    "load_build_options",
    "load_project_config",
]
