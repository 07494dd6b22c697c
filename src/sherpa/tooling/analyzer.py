# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Static inspection of Python modules: exported names and default-export detection.

Nothing here executes user code. Every call re-reads and re-parses the file so
the result always reflects its current content.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from pathlib import Path

# ###############
# Public Interface
# ###############

DEFAULT_EXPORT = "default"


class AnalysisError(Exception):
    """Raised when a source file cannot be read or parsed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class Declaration:
    """The site where an exported name is first bound.

    Attributes:
        name: The bound identifier.
        kind: ``"function"``, ``"class"``, ``"variable"`` or ``"import"``.
        line: 1-based line of the binding statement.
        column: 0-based column of the binding statement.
    """

    name: str
    kind: str
    line: int
    column: int


def parse_module(filepath: str | Path) -> ast.Module:
    """Read and parse *filepath*.

    Raises:
        AnalysisError: If the file cannot be read or is not valid Python.
    """
    source = read_source(filepath)
    try:
        return ast.parse(source, filename=str(filepath))
    except SyntaxError as exc:
        raise AnalysisError(f"Cannot parse '{filepath}' (line {exc.lineno}): {exc.msg}") from exc


def read_source(filepath: str | Path) -> str:
    """Return the text of *filepath*, raising :class:`AnalysisError` if unreadable."""
    try:
        return Path(filepath).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise AnalysisError(f"Cannot read source file '{filepath}': {exc}") from exc


def top_level_bindings(tree: ast.Module) -> dict[str, tuple[ast.stmt, str]]:
    """Map every name bound at module level to its first binding statement and kind.

    Statements nested in top-level ``if``, ``try`` and ``with`` blocks count as
    module level since they bind module globals.
    """
    bindings: dict[str, tuple[ast.stmt, str]] = {}
    for stmt in _module_level_statements(tree.body):
        for name, kind in _bound_names(stmt):
            bindings.setdefault(name, (stmt, kind))
    return bindings


def get_exported_declarations(filepath: str | Path) -> dict[str, Declaration]:
    """Return the exported names of a module mapped to their declaration sites.

    When the module assigns a literal ``__all__``, its entries define the
    exports (entries that are never bound are skipped). Otherwise every public
    top-level name bound by ``def``, ``class`` or assignment is exported;
    plain imports are not, since re-exports must be listed in ``__all__``.

    The mapping preserves declaration order (``__all__`` order when present).

    Raises:
        AnalysisError: If the file cannot be read or parsed.
    """
    tree = parse_module(filepath)
    bindings = top_level_bindings(tree)
    declared_all = _literal_all(tree)

    if declared_all is not None:
        names = declared_all
    else:
        names = [name for name, (_, kind) in bindings.items() if kind != "import" and not name.startswith("_")]

    exports: dict[str, Declaration] = {}
    for name in names:
        if name in exports or name not in bindings:
            continue
        stmt, kind = bindings[name]
        exports[name] = Declaration(name=name, kind=kind, line=stmt.lineno, column=stmt.col_offset)
    return exports


def get_exported_variable_names(filepath: str | Path) -> list[str]:
    """Return the exported identifiers of a module in declaration order, without duplicates.

    Raises:
        AnalysisError: If the file cannot be read or parsed.
    """
    return list(get_exported_declarations(filepath))


def has_default_export(filepath: str | Path) -> bool:
    """Return True if the module appears to bind a module-level ``default``.

    This is a textual check used to decide whether running the module to read
    its default export is worthwhile; it does not parse or execute the file.

    Raises:
        AnalysisError: If the file cannot be read.
    """
    return _DEFAULT_EXPORT_RE.search(read_source(filepath)) is not None


# ################
# Implementation
# ################

_DEFAULT_EXPORT_RE = re.compile(
    r"^(?:"
    r"default\s*(?::[^=\n]*)?=(?!=)"
    r"|(?:async\s+)?def\s+default\s*\("
    r"|class\s+default\b"
    r"|from\s+\S+\s+import\s+[^\n]*\bas\s+default\b"
    r")",
    re.MULTILINE,
)


def _module_level_statements(body: list[ast.stmt]) -> list[ast.stmt]:
    """Flatten a module body, descending into top-level control-flow blocks."""
    flat: list[ast.stmt] = []
    for stmt in body:
        if isinstance(stmt, ast.If):
            flat.extend(_module_level_statements(stmt.body))
            flat.extend(_module_level_statements(stmt.orelse))
        elif isinstance(stmt, ast.Try):
            flat.extend(_module_level_statements(stmt.body))
            for handler in stmt.handlers:
                flat.extend(_module_level_statements(handler.body))
            flat.extend(_module_level_statements(stmt.orelse))
            flat.extend(_module_level_statements(stmt.finalbody))
        elif isinstance(stmt, ast.With):
            flat.extend(_module_level_statements(stmt.body))
        else:
            flat.append(stmt)
    return flat


def _bound_names(stmt: ast.stmt) -> list[tuple[str, str]]:
    """Return the (name, kind) pairs bound by a single statement."""
    if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return [(stmt.name, "function")]
    if isinstance(stmt, ast.ClassDef):
        return [(stmt.name, "class")]
    if isinstance(stmt, ast.Assign):
        return [(name, "variable") for target in stmt.targets for name in _target_names(target)]
    if isinstance(stmt, ast.AnnAssign):
        return [(name, "variable") for name in _target_names(stmt.target)]
    if isinstance(stmt, ast.Import):
        return [((alias.asname or alias.name.split(".")[0]), "import") for alias in stmt.names]
    if isinstance(stmt, ast.ImportFrom):
        return [((alias.asname or alias.name), "import") for alias in stmt.names if alias.name != "*"]
    return []


def _target_names(target: ast.expr) -> list[str]:
    """Return the plain names bound by an assignment target (tuples are unpacked)."""
    if isinstance(target, ast.Name):
        return [target.id]
    if isinstance(target, (ast.Tuple, ast.List)):
        return [name for elt in target.elts for name in _target_names(elt)]
    if isinstance(target, ast.Starred):
        return _target_names(target.value)
    return []


def _literal_all(tree: ast.Module) -> list[str] | None:
    """Return the entries of a literal ``__all__`` (including ``+=`` extensions), if any."""
    names: list[str] | None = None
    for stmt in _module_level_statements(tree.body):
        value: ast.expr | None = None
        extend = False
        if isinstance(stmt, ast.Assign) and any(isinstance(t, ast.Name) and t.id == "__all__" for t in stmt.targets):
            value = stmt.value
        elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name) and stmt.target.id == "__all__":
            value = stmt.value
        elif (
            isinstance(stmt, ast.AugAssign)
            and isinstance(stmt.target, ast.Name)
            and stmt.target.id == "__all__"
            and isinstance(stmt.op, ast.Add)
        ):
            value = stmt.value
            extend = True
        if not isinstance(value, (ast.List, ast.Tuple)):
            continue
        entries = [elt.value for elt in value.elts if isinstance(elt, ast.Constant) and isinstance(elt.value, str)]
        if extend and names is not None:
            names.extend(entries)
        else:
            names = entries
    return names
