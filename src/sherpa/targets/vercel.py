# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Vercel target: one serverless function per endpoint (Build Output API v3)."""

from __future__ import annotations

import json
import re
from pathlib import Path

from sherpa.model.options import BundlerType
from sherpa.model.project import Endpoint, Project
from sherpa.targets.base import SERVER_IMPORT_NAME, Entrypoint, Target
from sherpa.targets.runtime import RUNTIME_SOURCE, context_source, route_entry

# ###############
# Public Interface
# ###############

OUTPUT_DIRECTORY = Path(".vercel", "output")
FUNCTION_RUNTIME = "python3.12"


class VercelTarget(Target):
    """Emits ``.vercel/output/functions/<route>.func/index.py`` for every endpoint."""

    bundler = BundlerType.VERCEL

    def entrypoints(self, project: Project, output: Path) -> list[Entrypoint]:
        return [
            Entrypoint(
                buffer=_function_source(project, endpoint),
                output=_function_directory(output, endpoint) / "index.py",
                resolve=project.root,
            )
            for endpoint in project.endpoints
        ]

    def assets(self, project: Project, output: Path) -> dict[Path, str]:
        files: dict[Path, str] = {}
        for endpoint in project.endpoints:
            vc_config = {"runtime": FUNCTION_RUNTIME, "handler": "index.py", "launcherType": "Python"}
            files[_function_directory(output, endpoint) / ".vc-config.json"] = _dump(vc_config)
        config = {
            "version": 3,
            "routes": [
                {"src": _route_regex(endpoint.route), "dest": f"/{endpoint.function_name}"}
                for endpoint in project.endpoints
                if endpoint.parameters
            ],
        }
        files[output / OUTPUT_DIRECTORY / "config.json"] = _dump(config)
        return files


# ################
# Implementation
# ################


def _function_directory(output: Path, endpoint: Endpoint) -> Path:
    return output / OUTPUT_DIRECTORY / "functions" / f"{endpoint.function_name}.func"


def _function_source(project: Project, endpoint: Endpoint) -> str:
    return (
        f"{RUNTIME_SOURCE}\n"
        f"import {endpoint.module} as _endpoint\n"
        f"{context_source(project.server is not None, SERVER_IMPORT_NAME)}\n\n"
        "class handler(_SherpaHandler):\n"
        f"    routes = [{route_entry(endpoint.route, '_endpoint', endpoint.methods)}]\n"
        "    context = _CONTEXT\n"
    )


def _route_regex(route: str) -> str:
    segments = [re.sub(r"^\{[A-Za-z_][A-Za-z0-9_]*\}$", "[^/]+", s) for s in route.strip("/").split("/")]
    return "^/" + "/".join(segments) + "/?$"


def _dump(data: object) -> str:
    return json.dumps(data, indent=2) + "\n"
