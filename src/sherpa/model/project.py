# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project structure: the server module, endpoint modules, and their declared configuration."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import Field as _Field

from sherpa.model.schema import FieldSchema, Schema

# ###############
# Public Interface
# ###############

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

ROUTES_DIRECTORY = "routes"
SERVER_MODULE = "sherpa_server.py"

# Every request handler is called as ``handler(request)`` or
# ``handler(request, context)`` by the generated entrypoints.
HANDLER_SCHEMA = Schema(
    kind="function",
    parameters=[
        FieldSchema(name="request"),
        FieldSchema(name="context", required=False),
    ],
)

_PARAM_SEGMENT_RE = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")


class EndpointConfig(BaseModel):
    """Route configuration declared as an endpoint module's default export.

    Attributes:
        path: URL pattern overriding the file-derived route. Segments written
            as ``{name}`` capture path parameters.
        methods: Restricts the served methods to this subset of the exported
            handlers.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str | None = None
    methods: list[str] | None = None

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not value.startswith("/"):
            raise ValueError("path must start with '/'")
        for segment in value.strip("/").split("/"):
            if "{" in segment or "}" in segment:
                if not _PARAM_SEGMENT_RE.match(segment):
                    raise ValueError(f"invalid path parameter segment '{segment}'")
        return value

    @field_validator("methods")
    @classmethod
    def _check_methods(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        upper = [m.upper() for m in value]
        unknown = [m for m in upper if m not in HTTP_METHODS]
        if unknown:
            raise ValueError(f"unknown HTTP method(s): {', '.join(unknown)}")
        return upper


class ServerConfig(BaseModel):
    """Server-wide configuration declared as the server module's default export.

    Attributes:
        context: Value passed as the ``context`` argument to every handler.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    context: dict[str, Any] = _Field(default_factory=dict)


class Endpoint(BaseModel):
    """A checked endpoint module, ready for entrypoint synthesis.

    Attributes:
        filepath: Absolute path of the module file.
        module: Dotted import name relative to the project root
            (e.g. ``"routes.users.index"``).
        route: URL pattern served by the endpoint.
        methods: HTTP methods handled, in the order the module declares them.
    """

    model_config = ConfigDict(frozen=True)

    filepath: Path
    module: str
    route: str
    methods: list[str]

    @property
    def parameters(self) -> list[str]:
        """Names of the path parameters captured by :attr:`route`."""
        names = []
        for segment in self.route.strip("/").split("/"):
            match = _PARAM_SEGMENT_RE.match(segment)
            if match:
                names.append(match.group(1))
        return names

    @property
    def function_name(self) -> str:
        """Filesystem-safe name for the route (``/users/{id}`` → ``users/[id]``)."""
        stripped = self.route.strip("/")
        if not stripped:
            return "index"
        return "/".join(_PARAM_SEGMENT_RE.sub(r"[\1]", s) for s in stripped.split("/"))


class Project(BaseModel):
    """Everything the targets need to synthesize entrypoints.

    Attributes:
        root: Project root directory.
        server: Path of the server module, if the project has one.
        config: Server configuration read from the server module.
        endpoints: Checked endpoints, ordered by module path.
    """

    model_config = ConfigDict(frozen=True)

    root: Path
    server: Path | None = None
    config: ServerConfig = _Field(default_factory=ServerConfig)
    endpoints: list[Endpoint] = _Field(default_factory=list)


def route_for(module_path: Path, routes_dir: Path) -> str:
    """Derive the URL route of an endpoint module from its location.

    ``routes/index.py`` serves ``/``, ``routes/users/index.py`` serves
    ``/users`` and ``routes/users/profile.py`` serves ``/users/profile``.
    """
    parts = list(module_path.relative_to(routes_dir).with_suffix("").parts)
    if parts and parts[-1] == "index":
        parts = parts[:-1]
    return "/" + "/".join(parts)
