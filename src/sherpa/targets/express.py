# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Express-style target: a single standalone HTTP server routing every endpoint."""

from __future__ import annotations

from pathlib import Path

from sherpa.model.options import BundlerType
from sherpa.model.project import Project
from sherpa.targets.base import SERVER_IMPORT_NAME, Entrypoint, Target
from sherpa.targets.runtime import RUNTIME_SOURCE, context_source, route_entry

# ###############
# Public Interface
# ###############

SERVER_OUTPUT = Path(".sherpa", "server.py")
DEFAULT_PORT = 3000


class ExpressTarget(Target):
    """Emits ``.sherpa/server.py``, runnable as ``python server.py [port]``."""

    bundler = BundlerType.EXPRESS_JS

    def entrypoints(self, project: Project, output: Path) -> list[Entrypoint]:
        return [Entrypoint(buffer=_server_source(project), output=output / SERVER_OUTPUT, resolve=project.root)]


# ################
# Implementation
# ################

_SERVE_SOURCE = f'''

class _Handler(_SherpaHandler):
    routes = ROUTES
    context = _CONTEXT


def serve(host="0.0.0.0", port={DEFAULT_PORT}):
    from http.server import ThreadingHTTPServer

    server = ThreadingHTTPServer((host, port), _Handler)
    print("Sherpa server listening on http://%s:%d" % (host, port))
    server.serve_forever()


if __name__ == "__main__":
    import sys as _sys

    serve(port=int(_sys.argv[1]) if len(_sys.argv) > 1 else {DEFAULT_PORT})
'''


def _server_source(project: Project) -> str:
    # Literal routes are matched before parameterized ones.
    endpoints = sorted(enumerate(project.endpoints), key=lambda item: (len(item[1].parameters), item[1].route))
    imports = "\n".join(f"import {endpoint.module} as _endpoint_{index}" for index, endpoint in endpoints)
    entries = ",\n".join(
        f"    {route_entry(endpoint.route, f'_endpoint_{index}', endpoint.methods)}" for index, endpoint in endpoints
    )
    routes = f"ROUTES = [\n{entries}\n]\n" if entries else "ROUTES = []\n"
    return (
        f"{RUNTIME_SOURCE}\n"
        f"{imports}\n"
        f"{context_source(project.server is not None, SERVER_IMPORT_NAME)}\n"
        f"{routes}"
        f"{_SERVE_SOURCE}"
    )
