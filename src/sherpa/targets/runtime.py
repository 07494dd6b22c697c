# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Request-handling runtime shared by every synthesized entrypoint.

The text below is placed at the top of each entrypoint buffer. It defines the
``Request`` object handlers receive, route matching, handler invocation, and
the coercion of handler results into HTTP responses:

* ``str`` → ``text/plain``, ``bytes`` → ``application/octet-stream``,
  anything else → JSON;
* ``None`` → ``204 No Content``;
* a tuple ``(body, status)`` or ``(body, status, headers)`` sets the status
  and extra headers.
"""

from __future__ import annotations

# ###############
# Public Interface
# ###############

RUNTIME_SOURCE = r'''
import asyncio as _asyncio
import inspect as _inspect
import json as _json
import re as _re
from http.server import BaseHTTPRequestHandler as _BaseHandler
from urllib.parse import parse_qs as _parse_qs
from urllib.parse import urlsplit as _urlsplit

_PARAM_SEGMENT = _re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")


class Request:
    def __init__(self, method, url, headers, body, params):
        parts = _urlsplit(url)
        self.method = method
        self.url = url
        self.path = parts.path
        self.query = {key: values[-1] for key, values in _parse_qs(parts.query).items()}
        self.headers = headers
        self.body = body
        self.params = params

    def text(self):
        return self.body.decode("utf-8")

    def json(self):
        return _json.loads(self.body) if self.body else None


def _compile_route(route):
    segments = []
    for segment in route.strip("/").split("/"):
        match = _PARAM_SEGMENT.match(segment)
        segments.append("(?P<%s>[^/]+)" % match.group(1) if match else _re.escape(segment))
    return _re.compile("^/" + "/".join(segments) + "/?$")


def _accepts_context(handler):
    try:
        parameters = list(_inspect.signature(handler).parameters.values())
    except (TypeError, ValueError):
        return True
    if any(p.kind is p.VAR_POSITIONAL for p in parameters):
        return True
    positional = [p for p in parameters if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
    return len(positional) >= 2


def _coerce(result):
    status, headers = 200, {}
    if isinstance(result, tuple):
        result, status, *rest = result
        if rest:
            headers = dict(rest[0])
    if result is None:
        return (204 if status == 200 else status), headers, b""
    if isinstance(result, bytes):
        headers.setdefault("Content-Type", "application/octet-stream")
        return status, headers, result
    if isinstance(result, str):
        headers.setdefault("Content-Type", "text/plain; charset=utf-8")
        return status, headers, result.encode("utf-8")
    headers.setdefault("Content-Type", "application/json")
    return status, headers, _json.dumps(result).encode("utf-8")


def _invoke(handler, request, context):
    result = handler(request, context) if _accepts_context(handler) else handler(request)
    if _inspect.isawaitable(result):
        result = _asyncio.run(result)
    return _coerce(result)


def _plain(status, text, extra=None):
    headers = {"Content-Type": "text/plain; charset=utf-8"}
    headers.update(extra or {})
    return status, headers, text.encode("utf-8")


def _dispatch(routes, method, url, headers, body, context):
    path = _urlsplit(url).path
    for pattern, endpoint, methods in routes:
        match = pattern.match(path)
        if match is None:
            continue
        if method not in methods:
            return _plain(405, "Method Not Allowed", {"Allow": ", ".join(methods)})
        request = Request(method, url, headers, body, match.groupdict())
        try:
            return _invoke(getattr(endpoint, method), request, context)
        except Exception as exc:
            return _plain(500, "Internal Server Error: %s" % exc)
    return _plain(404, "Not Found")


class _SherpaHandler(_BaseHandler):
    routes = []
    context = {}

    def _handle(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        status, headers, payload = _dispatch(
            self.routes, self.command, self.path, dict(self.headers.items()), body, self.context
        )
        self.send_response(status)
        for key, value in headers.items():
            self.send_header(key, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(payload)

    do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = do_HEAD = do_OPTIONS = _handle
'''


def context_source(has_server: bool, server_module: str) -> str:
    """Return the lines binding ``_CONTEXT`` from the server module's default export."""
    if not has_server:
        return "_CONTEXT = {}\n"
    return f"import {server_module} as _server\n\n_CONTEXT = dict(_server.default.get('context', {{}}))\n"


def route_entry(route: str, endpoint_name: str, methods: list[str]) -> str:
    """Return the source of one routing-table entry."""
    return f"(_compile_route({route!r}), {endpoint_name}, {tuple(methods)!r})"
