# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for entrypoint synthesis of the deployment targets."""

import json
from pathlib import Path
from typing import Any

from sherpa.model.options import BundlerType
from sherpa.model.project import Endpoint, Project
from sherpa.targets import ExpressTarget, VercelTarget, target_for
from sherpa.targets.express import SERVER_OUTPUT
from sherpa.targets.runtime import RUNTIME_SOURCE
from sherpa.targets.vercel import OUTPUT_DIRECTORY

# ###############
# Helpers
# ###############


def _endpoint(root: Path, module: str, route: str, methods: list[str]) -> Endpoint:
    return Endpoint(filepath=root / (module.replace(".", "/") + ".py"), module=module, route=route, methods=methods)


def _project(root: Path, *endpoints: Endpoint, server: bool = False) -> Project:
    return Project(root=root, server=root / "sherpa_server.py" if server else None, endpoints=list(endpoints))


def _runtime() -> dict[str, Any]:
    namespace: dict[str, Any] = {"__name__": "runtime_under_test"}
    exec(compile(RUNTIME_SOURCE, "<runtime>", "exec"), namespace)
    return namespace


class _Handlers:
    """Stands in for an endpoint module."""

    @staticmethod
    def GET(request):
        return {"id": request.params.get("id"), "q": request.query.get("q")}

    @staticmethod
    def POST(request, context):
        return request.json(), 201, {"X-Env": context["env"]}

    @staticmethod
    def PUT(request):
        raise ValueError("bad")

    @staticmethod
    def DELETE(request):
        return None

    @staticmethod
    def PATCH(request):
        return "patched"


# ###############
# Registry
# ###############


class TestRegistry:
    def test_target_for_each_bundler(self) -> None:
        assert isinstance(target_for(BundlerType.VERCEL), VercelTarget)
        assert isinstance(target_for(BundlerType.EXPRESS_JS), ExpressTarget)
        for bundler in BundlerType:
            assert target_for(bundler).bundler is bundler


# ###############
# Runtime
# ###############


class TestRuntime:
    def _routes(self, runtime: dict[str, Any]) -> list:
        methods = ("GET", "POST", "PUT", "DELETE", "PATCH")
        return [
            (runtime["_compile_route"]("/items/{id}"), _Handlers, methods),
            (runtime["_compile_route"]("/"), _Handlers, ("GET",)),
        ]

    def test_json_response_with_params_and_query(self) -> None:
        runtime = _runtime()
        status, headers, body = runtime["_dispatch"](self._routes(runtime), "GET", "/items/7?q=x", {}, b"", {})
        assert status == 200
        assert headers["Content-Type"] == "application/json"
        assert json.loads(body) == {"id": "7", "q": "x"}

    def test_tuple_result_sets_status_and_headers(self) -> None:
        runtime = _runtime()
        status, headers, body = runtime["_dispatch"](
            self._routes(runtime), "POST", "/items/1", {}, b'{"a": 1}', {"env": "test"}
        )
        assert status == 201
        assert headers["X-Env"] == "test"
        assert json.loads(body) == {"a": 1}

    def test_text_and_empty_results(self) -> None:
        runtime = _runtime()
        routes = self._routes(runtime)
        status, headers, body = runtime["_dispatch"](routes, "PATCH", "/items/1", {}, b"", {})
        assert (status, body) == (200, b"patched")
        assert headers["Content-Type"].startswith("text/plain")
        status, _, body = runtime["_dispatch"](routes, "DELETE", "/items/1", {}, b"", {})
        assert (status, body) == (204, b"")

    def test_handler_error_is_500(self) -> None:
        runtime = _runtime()
        status, _, body = runtime["_dispatch"](self._routes(runtime), "PUT", "/items/1", {}, b"", {})
        assert status == 500
        assert b"bad" in body

    def test_unknown_route_and_method(self) -> None:
        runtime = _runtime()
        routes = self._routes(runtime)
        assert runtime["_dispatch"](routes, "GET", "/missing", {}, b"", {})[0] == 404
        status, headers, _ = runtime["_dispatch"](routes, "POST", "/", {}, b"", {})
        assert status == 405
        assert headers["Allow"] == "GET"

    def test_async_handlers(self) -> None:
        runtime = _runtime()

        class Async:
            @staticmethod
            async def GET(request):
                return {"ok": True}

        routes = [(runtime["_compile_route"]("/"), Async, ("GET",))]
        status, _, body = runtime["_dispatch"](routes, "GET", "/", {}, b"", {})
        assert status == 200
        assert json.loads(body) == {"ok": True}


# ###############
# Vercel
# ###############


class TestVercelTarget:
    def test_one_function_per_endpoint(self, tmp_path: Path) -> None:
        project = _project(
            tmp_path,
            _endpoint(tmp_path, "routes.index", "/", ["GET"]),
            _endpoint(tmp_path, "routes.users", "/users/{id}", ["GET", "POST"]),
        )
        out = tmp_path / "out"
        entrypoints = VercelTarget().entrypoints(project, out)
        functions = out / OUTPUT_DIRECTORY / "functions"
        assert [e.output for e in entrypoints] == [
            functions / "index.func" / "index.py",
            functions / "users" / "[id].func" / "index.py",
        ]
        assert all(e.resolve == tmp_path for e in entrypoints)
        assert "import routes.users as _endpoint" in entrypoints[1].buffer
        assert "class handler(_SherpaHandler):" in entrypoints[1].buffer
        assert "'/users/{id}'" in entrypoints[1].buffer

    def test_context_from_server_module(self, tmp_path: Path) -> None:
        project = _project(tmp_path, _endpoint(tmp_path, "routes.index", "/", ["GET"]), server=True)
        buffer = VercelTarget().entrypoints(project, tmp_path)[0].buffer
        assert "import sherpa_server as _server" in buffer

    def test_assets(self, tmp_path: Path) -> None:
        project = _project(
            tmp_path,
            _endpoint(tmp_path, "routes.index", "/", ["GET"]),
            _endpoint(tmp_path, "routes.users", "/users/{id}", ["GET"]),
        )
        out = tmp_path / "out"
        assets = VercelTarget().assets(project, out)
        config = json.loads(assets[out / OUTPUT_DIRECTORY / "config.json"])
        assert config == {"version": 3, "routes": [{"src": "^/users/[^/]+/?$", "dest": "/users/[id]"}]}
        vc_config = json.loads(assets[out / OUTPUT_DIRECTORY / "functions" / "index.func" / ".vc-config.json"])
        assert vc_config["handler"] == "index.py"

    def test_no_endpoints(self, tmp_path: Path) -> None:
        assert VercelTarget().entrypoints(_project(tmp_path), tmp_path) == []


# ###############
# Express
# ###############


class TestExpressTarget:
    def test_single_server_entrypoint(self, tmp_path: Path) -> None:
        project = _project(
            tmp_path,
            _endpoint(tmp_path, "routes.users", "/users/{id}", ["GET"]),
            _endpoint(tmp_path, "routes.users_me", "/users/me", ["GET"]),
        )
        out = tmp_path / "out"
        entrypoints = ExpressTarget().entrypoints(project, out)
        assert len(entrypoints) == 1
        assert entrypoints[0].output == out / SERVER_OUTPUT
        buffer = entrypoints[0].buffer
        assert "import routes.users as _endpoint_0" in buffer
        assert "import routes.users_me as _endpoint_1" in buffer
        assert buffer.index("'/users/me'") < buffer.index("'/users/{id}'")
        assert "def serve(" in buffer

    def test_no_assets(self, tmp_path: Path) -> None:
        assert ExpressTarget().assets(_project(tmp_path), tmp_path) == {}
