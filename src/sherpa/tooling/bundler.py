# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Single-file bundler for Python entrypoints.

The bundler turns an entry source (a file or an in-memory buffer) into one
self-contained script:

* **Local imports are inlined.** Every module reachable from the entry that
  resolves inside the resolution directory (or the shared dependency
  directory, see :func:`sherpa.tooling.resolver.resolve`) is stored in a
  source table at the top of the bundle. Import statements are rewritten to
  ``_sherpa_require`` calls that execute a module on first use and cache it
  in a bundle-private table, so bundled modules never touch ``sys.modules``.
  Imports that do not resolve locally (stdlib, installed packages, names in
  ``external``) are left untouched.

* **Defines are substituted.** Each ``define`` key is a dotted name
  (e.g. ``os.environ``) whose every load is replaced by the parsed value
  expression.

* **Banner and footer** text is placed around the generated code.

Only reachable modules are carried unless ``tree_shaking`` is disabled.
"""

from __future__ import annotations

import ast
import copy
import os
import re
import sys
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import Field as _Field

from sherpa.logger.log import get_logger
from sherpa.tooling.resolver import SHARED_DEPENDENCY_DIRECTORY, resolve

# ###############
# Public Interface
# ###############

ATTRIBUTION = "# Generated by Sherpa"

_TARGET_RE = re.compile(r"^3\.\d+$")


class BuildError(Exception):
    """Raised when a bundle cannot be produced.

    Covers syntax errors, unresolved relative imports, invalid substitutions,
    invalid options, and output files that may not be overwritten.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class BundlerOptions(BaseModel):
    """Configuration of a single bundling call.

    Attributes:
        format: ``"exports"`` appends code that copies the entry's public names
            into a ``module["exports"]`` record when the executing namespace
            provides one; ``"script"`` emits the plain script.
        target: Oldest Python version (``"3.X"``) the bundle must parse on.
        bundle: Inline local imports. When disabled, imports are left as-is.
        tree_shaking: Carry only modules reachable from the entry. When
            disabled, every module under the resolution directory is carried.
        minify: Strip docstrings from the generated code.
        allow_overwrite: Permit replacing an existing output file.
        banner: Text placed before the code, keyed by language (``"py"``).
        footer: Text placed after the code, keyed by language (``"py"``).
        define: Dotted names replaced by the given Python expressions.
        external: Module names that are never inlined.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    format: Literal["exports", "script"] = "exports"
    target: str = "3.10"
    bundle: bool = True
    tree_shaking: bool = True
    minify: bool = False
    allow_overwrite: bool = False
    banner: dict[str, str] = _Field(default_factory=dict)
    footer: dict[str, str] = _Field(default_factory=dict)
    define: dict[str, str] = _Field(default_factory=dict)
    external: list[str] = _Field(default_factory=list)

    @field_validator("target")
    @classmethod
    def _check_target(cls, value: str) -> str:
        if not _TARGET_RE.match(value):
            raise ValueError(f"target must look like '3.X', got '{value}'")
        return value


class StdinOptions(BaseModel):
    """An in-memory entry source.

    Attributes:
        contents: Python source of the entry.
        resolve_dir: Directory the entry is compiled as if it lived in; local
            imports are resolved relative to it.
        sourcefile: Name used for the entry in error messages.
    """

    model_config = ConfigDict(frozen=True)

    contents: str
    resolve_dir: Path | None = None
    sourcefile: str = "<stdin>"


DEFAULT_BUNDLER_OPTIONS = BundlerOptions(
    format="exports",
    target="3.10",
    bundle=True,
    allow_overwrite=True,
    tree_shaking=True,
    minify=True,
    footer={"py": ATTRIBUTION},
)


def merge_bundler_options(*layers: BundlerOptions | Mapping[str, Any]) -> BundlerOptions:
    """Combine option layers, later layers taking precedence.

    Merging is shallow per key, except for ``banner``, ``footer`` and
    ``define`` whose entries are merged per sub-key. Fields left unset on a
    :class:`BundlerOptions` layer do not override earlier layers.

    Raises:
        BuildError: If the combined options are invalid.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        data = layer.model_dump(exclude_unset=True) if isinstance(layer, BundlerOptions) else dict(layer)
        for key, value in data.items():
            if key in _NESTED_KEYS and isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
    try:
        return BundlerOptions.model_validate(merged)
    except pydantic.ValidationError as exc:
        raise BuildError(f"Invalid bundler options: {exc}") from exc


def bundle(
    options: BundlerOptions,
    *,
    entry_point: str | Path | None = None,
    stdin: StdinOptions | None = None,
    outfile: str | Path | None = None,
) -> str:
    """Bundle one entry into a self-contained script.

    Exactly one of *entry_point* and *stdin* must be given.

    Args:
        options: Effective bundler options.
        entry_point: Path of the entry file.
        stdin: In-memory entry source.
        outfile: Where to write the bundle. The file is replaced atomically
            and only once the bundle is complete. Nothing is written if omitted.

    Returns:
        The bundle text.

    Raises:
        BuildError: On any failure to produce the bundle.
    """
    if (entry_point is None) == (stdin is None):
        raise BuildError("Exactly one of 'entry_point' and 'stdin' must be given")

    if stdin is not None:
        source = stdin.contents
        filename = stdin.sourcefile
        root = Path(stdin.resolve_dir) if stdin.resolve_dir is not None else Path(".")
        entry_file: Path | None = None
    else:
        entry_file = Path(entry_point)
        try:
            source = entry_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BuildError(f"Cannot read entry point '{entry_file}': {exc}") from exc
        filename = str(entry_file)
        root = entry_file.parent

    graph = _ModuleGraph(options, root)
    entry = graph.transform(source, filename, package="")
    if options.bundle and not options.tree_shaking:
        graph.include_tree(exclude=entry_file)

    text = _render(options, entry, graph)
    try:
        compile(text, filename, "exec")
    except SyntaxError as exc:
        raise BuildError(f"Generated bundle for '{filename}' is not valid Python: {exc.msg}") from exc

    if outfile is not None:
        _write_atomically(Path(outfile), text, allow_overwrite=options.allow_overwrite)
    _log.debug("Bundled %s with %d inlined module(s)", filename, len(graph.modules))
    return text


# ################
# Implementation
# ################

_log = get_logger("bundler")

_DOTTED_RE = re.compile(r"^[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*$")
_NESTED_KEYS = frozenset({"banner", "footer", "define"})
_REQUIRE = "_sherpa_require"
_STAR = "_sherpa_star"
_SKIPPED_DIRECTORIES = frozenset({"__pycache__", SHARED_DEPENDENCY_DIRECTORY, "node_modules"})

_PRELUDE = '''\
import types as _sherpa_types

_SHERPA_SOURCES = @SOURCES@
_SHERPA_MODULES = {}


def _sherpa_require(name, bind=None):
    if name not in _SHERPA_MODULES:
        parent, _, child = name.rpartition(".")
        if parent:
            _sherpa_require(parent)
        filename, is_package, source = _SHERPA_SOURCES.get(name, (name, True, ""))
        module = _sherpa_types.ModuleType(name)
        module.__file__ = filename
        if is_package:
            module.__path__ = []
        module.__dict__["_sherpa_require"] = _sherpa_require
        module.__dict__["_sherpa_star"] = _sherpa_star
        _SHERPA_MODULES[name] = module
        if parent:
            setattr(_SHERPA_MODULES[parent], child, module)
        exec(compile(source, filename, "exec"), module.__dict__)
    return _SHERPA_MODULES[bind or name]


def _sherpa_star(namespace, module):
    names = getattr(module, "__all__", None)
    if names is None:
        names = [n for n in vars(module) if not n.startswith("_")]
    namespace.update({n: getattr(module, n) for n in names})'''

_EXPORTS_EPILOGUE = '''\
if isinstance(globals().get("module"), dict):
    module.setdefault("exports", {}).update(
        {
            _name: _value
            for _name, _value in list(globals().items())
            if not _name.startswith("_") and _name not in ("module", "process")
        }
    )'''


@dataclass(frozen=True)
class _BundledModule:
    filename: str
    is_package: bool
    source: str


class _ModuleGraph:
    """Collects the local modules reachable from an entry, transforming each once."""

    def __init__(self, options: BundlerOptions, root: Path) -> None:
        self.options = options
        self.root = root
        self.modules: dict[str, _BundledModule] = {}
        self.uses_require = False
        self._loading: set[str] = set()
        self._defines = _parse_defines(options.define)
        self._feature_version = (3, int(options.target.split(".")[1]))

    def transform(self, source: str, filename: str, *, package: str) -> ast.Module:
        try:
            tree = ast.parse(source, filename=filename, feature_version=self._feature_version)
        except SyntaxError as exc:
            raise BuildError(f"Syntax error in '{filename}' (line {exc.lineno}): {exc.msg}") from exc
        if self.options.bundle:
            tree = _ImportRewriter(self, package, filename).visit(tree)
        if self._defines:
            tree = _DefineSubstituter(self._defines, filename).visit(tree)
        if self.options.minify:
            _strip_docstrings(tree)
        return ast.fix_missing_locations(tree)

    def is_external(self, name: str) -> bool:
        top = name.split(".")[0]
        return name in self.options.external or top in self.options.external

    def locate(self, name: str) -> tuple[Path, bool] | None:
        """Return the file of module *name* and whether it is a package."""
        rel = "/".join(name.split("."))
        module_file = resolve(f"{rel}.py", self.root)
        if module_file is not None and module_file.is_file():
            return module_file, False
        package_file = resolve(f"{rel}/__init__.py", self.root)
        if package_file is not None and package_file.is_file():
            return package_file, True
        return None

    def is_namespace(self, name: str) -> bool:
        """Return True if *name* is a local directory without ``__init__.py``."""
        if name.split(".")[0] in sys.stdlib_module_names:
            return False
        found = resolve("/".join(name.split(".")), self.root)
        return found is not None and found.is_dir()

    def require(self, name: str) -> bool:
        """Ensure module *name* is in the graph; return False if it is not local."""
        if name in self.modules or name in self._loading:
            return True
        located = self.locate(name)
        if located is None:
            return False
        path, is_package = located
        filename = "/".join(name.split(".")) + ("/__init__.py" if is_package else ".py")
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BuildError(f"Cannot read module '{path}': {exc}") from exc
        package = name if is_package else name.rpartition(".")[0]
        self._loading.add(name)
        try:
            tree = self.transform(source, filename, package=package)
        finally:
            self._loading.discard(name)
        self.modules[name] = _BundledModule(filename=filename, is_package=is_package, source=ast.unparse(tree))
        return True

    def include_tree(self, *, exclude: Path | None = None) -> None:
        """Carry every module found under the resolution directory."""
        for path in sorted(self.root.rglob("*.py")):
            rel = path.relative_to(self.root)
            if exclude is not None and path.resolve() == exclude.resolve():
                continue
            if any(part.startswith(".") or part in _SKIPPED_DIRECTORIES for part in rel.parts[:-1]):
                continue
            parts = list(rel.with_suffix("").parts)
            if parts[-1] == "__init__":
                parts = parts[:-1]
            if parts and all(part.isidentifier() for part in parts):
                self.require(".".join(parts))


class _ImportRewriter(ast.NodeTransformer):
    """Rewrites imports of local modules into ``_sherpa_require`` calls."""

    def __init__(self, graph: _ModuleGraph, package: str, filename: str) -> None:
        self.graph = graph
        self.package = package
        self.filename = filename

    def visit_Import(self, node: ast.Import) -> Any:
        local = [alias for alias in node.names if self._is_local(alias.name)]
        if not local:
            return node
        statements: list[ast.stmt] = []
        for alias in node.names:
            if alias not in local:
                statements.append(ast.Import(names=[alias]))
            elif alias.asname:
                statements.append(_assign(alias.asname, self._require(alias.name)))
            else:
                top = alias.name.split(".")[0]
                statements.append(_assign(top, self._require(alias.name, top)))
        return [ast.copy_location(stmt, node) for stmt in statements]

    def visit_ImportFrom(self, node: ast.ImportFrom) -> Any:
        if node.module == "__future__":
            return node
        name = self._absolute_name(node)
        if node.level == 0 and self.graph.is_external(name):
            return node

        is_module = bool(name) and self.graph.require(name)
        if not is_module and not (name == "" or self.graph.is_namespace(name)):
            if node.level > 0:
                raise BuildError(
                    f"Unresolved relative import '{'.' * node.level}{node.module or ''}' in '{self.filename}'"
                    f" (line {node.lineno})"
                )
            return node

        statements: list[ast.stmt] = []
        for alias in node.names:
            if alias.name == "*":
                if not is_module:
                    raise BuildError(f"Cannot star-import from namespace '{name}' in '{self.filename}'")
                star = ast.Call(
                    func=ast.Name(id=_STAR, ctx=ast.Load()),
                    args=[ast.Call(func=ast.Name(id="globals", ctx=ast.Load()), args=[], keywords=[]),
                          self._require(name)],
                    keywords=[],
                )
                statements.append(ast.Expr(value=star))
                continue
            submodule = f"{name}.{alias.name}" if name else alias.name
            if self.graph.require(submodule):
                value: ast.expr = self._require(submodule)
            elif is_module:
                value = ast.Attribute(value=self._require(name), attr=alias.name, ctx=ast.Load())
            else:
                raise BuildError(
                    f"Cannot resolve '{alias.name}' from '{name or '.'}' in '{self.filename}' (line {node.lineno})"
                )
            statements.append(_assign(alias.asname or alias.name, value))
        return [ast.copy_location(stmt, node) for stmt in statements]

    def _is_local(self, name: str) -> bool:
        if self.graph.is_external(name):
            return False
        return self.graph.require(name) or self.graph.is_namespace(name)

    def _absolute_name(self, node: ast.ImportFrom) -> str:
        if node.level == 0:
            return node.module or ""
        parts = self.package.split(".") if self.package else []
        if node.level - 1 > len(parts):
            raise BuildError(
                f"Relative import beyond the top-level package in '{self.filename}' (line {node.lineno})"
            )
        base = parts[: len(parts) - (node.level - 1)]
        if node.module:
            base += node.module.split(".")
        return ".".join(base)

    def _require(self, name: str, bind: str | None = None) -> ast.Call:
        self.graph.uses_require = True
        args: list[ast.expr] = [ast.Constant(value=name)]
        if bind is not None:
            args.append(ast.Constant(value=bind))
        return ast.Call(func=ast.Name(id=_REQUIRE, ctx=ast.Load()), args=args, keywords=[])


class _DefineSubstituter(ast.NodeTransformer):
    """Replaces loads of defined dotted names with their value expressions."""

    def __init__(self, defines: dict[str, ast.expr], filename: str) -> None:
        self.defines = defines
        self.filename = filename

    def visit_Name(self, node: ast.Name) -> Any:
        return self._substitute(node, node.id)

    def visit_Attribute(self, node: ast.Attribute) -> Any:
        dotted = _dotted_name(node)
        if dotted is not None and dotted in self.defines:
            return self._substitute(node, dotted)
        return self.generic_visit(node)

    def _substitute(self, node: ast.Name | ast.Attribute, dotted: str) -> ast.expr:
        if dotted not in self.defines:
            return node
        if not isinstance(node.ctx, ast.Load):
            raise BuildError(
                f"Cannot assign to or delete '{dotted}' in '{self.filename}' (line {node.lineno}): "
                "it is replaced at build time"
            )
        return ast.copy_location(copy.deepcopy(self.defines[dotted]), node)


def _parse_defines(define: Mapping[str, str]) -> dict[str, ast.expr]:
    parsed: dict[str, ast.expr] = {}
    for key, value in define.items():
        if not _DOTTED_RE.match(key):
            raise BuildError(f"Invalid define key '{key}': expected a dotted name")
        try:
            parsed[key] = ast.parse(value, mode="eval").body
        except SyntaxError as exc:
            raise BuildError(f"Invalid define value for '{key}': {exc.msg}") from exc
    return parsed


def _dotted_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = _dotted_name(node.value)
        return f"{base}.{node.attr}" if base is not None else None
    return None


def _assign(target: str, value: ast.expr) -> ast.Assign:
    return ast.Assign(targets=[ast.Name(id=target, ctx=ast.Store())], value=value)


def _strip_docstrings(tree: ast.Module) -> None:
    for node in ast.walk(tree):
        if not isinstance(node, (ast.Module, ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        body = node.body
        if (
            body
            and isinstance(body[0], ast.Expr)
            and isinstance(body[0].value, ast.Constant)
            and isinstance(body[0].value.value, str)
        ):
            node.body = body[1:] or [ast.Pass()]


def _render(options: BundlerOptions, entry: ast.Module, graph: _ModuleGraph) -> str:
    futures = [stmt for stmt in entry.body if isinstance(stmt, ast.ImportFrom) and stmt.module == "__future__"]
    body = [stmt for stmt in entry.body if stmt not in futures]

    sections: list[str] = []
    if options.banner.get("py"):
        sections.append(options.banner["py"])
    if futures:
        sections.append("\n".join(ast.unparse(stmt) for stmt in futures))
    if graph.modules or graph.uses_require:
        sections.append(_PRELUDE.replace("@SOURCES@", _source_table(graph.modules)))
    code = ast.unparse(ast.Module(body=body, type_ignores=[]))
    if code:
        sections.append(code)
    if options.format == "exports":
        sections.append(_EXPORTS_EPILOGUE)
    if options.footer.get("py"):
        sections.append(options.footer["py"])
    return "\n\n".join(sections) + "\n"


def _source_table(modules: Mapping[str, _BundledModule]) -> str:
    if not modules:
        return "{}"
    lines = ["{"]
    for name, module in modules.items():
        lines.append(f"    {name!r}: ({module.filename!r}, {module.is_package!r}, {module.source!r}),")
    lines.append("}")
    return "\n".join(lines)


def _write_atomically(path: Path, text: str, *, allow_overwrite: bool) -> None:
    if path.exists() and not allow_overwrite:
        raise BuildError(f"Output file '{path}' already exists and overwriting is disabled")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise BuildError(f"Cannot write output file '{path}': {exc}") from exc
