# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structural validation of exported functions and classes against a schema.

This is a shape check over the parsed source, not type inference: parameter
positions, names and annotations, return annotations, coroutine-ness, and
class attributes are compared with what the schema expects. Every finding is
returned as a :class:`~sherpa.model.messages.Message`; nothing is raised for
a mismatch.
"""

from __future__ import annotations

import ast
from pathlib import Path

from sherpa.model.messages import Location, Message, Severity
from sherpa.model.schema import FieldSchema, Schema
from sherpa.tooling.analyzer import get_exported_declarations, parse_module, top_level_bindings

# ###############
# Public Interface
# ###############


def type_check(
    filepath: str | Path,
    declared_type_name: str,
    function_name: str,
    schema: Schema,
) -> list[Message]:
    """Check that the export *function_name* of *filepath* conforms to *schema*.

    Findings are reported in traversal order:

    1. The name must be bound at module level (otherwise stop).
    2. The name must be exported.
    3. The binding must be of the schema's kind (otherwise stop). A name bound
       by a plain assignment other than a lambda cannot be verified and yields
       a warning.
    4. Functions: coroutine-ness, then each schema parameter by position
       (missing, misnamed, annotation), then unexpected required parameters,
       then the return annotation.
    5. Classes: each schema field (missing, annotation).

    Args:
        filepath: Module to inspect.
        declared_type_name: What kind of module this is (e.g. ``"Endpoint"``);
            used in message descriptions.
        function_name: The exported function or class to check.
        schema: The expected shape.

    Returns:
        Messages in the order found; empty when the export conforms.

    Raises:
        AnalysisError: If the file cannot be read or parsed.
    """
    path = Path(filepath)
    checker = _Checker(path, declared_type_name, function_name)
    tree = parse_module(path)
    bindings = top_level_bindings(tree)

    if function_name not in bindings:
        checker.error(f"does not define '{function_name}'", None)
        return checker.messages

    node, kind = bindings[function_name]
    if function_name not in get_exported_declarations(path):
        checker.error("is not exported", node)

    if schema.kind == "function":
        target = _function_node(node, function_name)
        if target is None:
            if isinstance(node, (ast.Assign, ast.AnnAssign, ast.Import, ast.ImportFrom)):
                how = "import" if kind == "import" else "assignment"
                checker.warning(f"is bound by {how}; its signature cannot be verified", node)
            else:
                checker.error(f"must be a function, found {kind}", node)
            return checker.messages
        _check_function(checker, target, schema)
    else:
        if not isinstance(node, ast.ClassDef):
            checker.error(f"must be a class, found {kind}", node)
            return checker.messages
        _check_class(checker, node, schema)

    return checker.messages


# ################
# Implementation
# ################

_FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef | ast.Lambda


class _Checker:
    """Accumulates messages about one export."""

    def __init__(self, path: Path, declared_type_name: str, function_name: str) -> None:
        self.path = path
        self.subject = f"{declared_type_name} '{path.name}': '{function_name}'"
        self.messages: list[Message] = []

    def error(self, text: str, node: ast.AST | None) -> None:
        self._add(Severity.ERROR, text, node)

    def warning(self, text: str, node: ast.AST | None) -> None:
        self._add(Severity.WARNING, text, node)

    def _add(self, severity: Severity, text: str, node: ast.AST | None) -> None:
        location = Location(file=self.path)
        if node is not None and hasattr(node, "lineno"):
            location = Location(file=self.path, line=node.lineno, column=node.col_offset)
        self.messages.append(Message(severity=severity, description=f"{self.subject} {text}", location=location))


def _function_node(node: ast.stmt, name: str) -> _FunctionNode | None:
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == name:
        return node
    if isinstance(node, (ast.Assign, ast.AnnAssign)) and isinstance(node.value, ast.Lambda):
        return node.value
    return None


def _check_function(checker: _Checker, node: _FunctionNode, schema: Schema) -> None:
    is_async = isinstance(node, ast.AsyncFunctionDef)
    if schema.is_async is True and not is_async:
        checker.error("must be declared with 'async def'", node)
    elif schema.is_async is False and is_async:
        checker.error("must not be a coroutine function", node)

    args = node.args
    positional = [*args.posonlyargs, *args.args]
    first_default = len(positional) - len(args.defaults)

    for index, expected in enumerate(schema.parameters):
        if index >= len(positional):
            if expected.required and args.vararg is None:
                checker.error(f"is missing required parameter '{expected.name}' at position {index + 1}", node)
            continue
        actual = positional[index]
        if actual.arg != expected.name:
            checker.warning(
                f"parameter {index + 1} is named '{actual.arg}', expected '{expected.name}'", actual
            )
        _check_annotation(checker, f"parameter '{actual.arg}'", actual.annotation, expected, actual)

    for index in range(len(schema.parameters), len(positional)):
        if index < first_default:
            checker.error(f"has unexpected required parameter '{positional[index].arg}'", positional[index])
    for kwarg, default in zip(args.kwonlyargs, args.kw_defaults):
        if default is None:
            checker.error(f"has unexpected required keyword-only parameter '{kwarg.arg}'", kwarg)

    if schema.returns is not None and not isinstance(node, ast.Lambda) and node.returns is not None:
        expected_returns = _normalize(schema.returns)
        actual_returns = _annotation_source(node.returns)
        if actual_returns != expected_returns:
            checker.error(f"must return '{expected_returns}', annotated '{actual_returns}'", node.returns)


def _check_class(checker: _Checker, node: ast.ClassDef, schema: Schema) -> None:
    members: dict[str, ast.AST] = {}
    annotations: dict[str, ast.expr] = {}
    for stmt in node.body:
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            members.setdefault(stmt.target.id, stmt)
            annotations.setdefault(stmt.target.id, stmt.annotation)
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                if isinstance(target, ast.Name):
                    members.setdefault(target.id, stmt)
        elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            members.setdefault(stmt.name, stmt)

    for expected in schema.fields:
        if expected.name not in members:
            if expected.required:
                checker.error(f"is missing required field '{expected.name}'", node)
            continue
        member = members[expected.name]
        _check_annotation(checker, f"field '{expected.name}'", annotations.get(expected.name), expected, member)


def _check_annotation(
    checker: _Checker,
    what: str,
    annotation: ast.expr | None,
    expected: FieldSchema,
    node: ast.AST,
) -> None:
    if expected.annotation is None or annotation is None:
        return
    expected_source = _normalize(expected.annotation)
    actual_source = _annotation_source(annotation)
    if actual_source != expected_source:
        checker.error(f"{what} must be annotated '{expected_source}', found '{actual_source}'", node)


def _annotation_source(annotation: ast.expr) -> str:
    """Return the normalized source of an annotation, unquoting string annotations."""
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        return _normalize(annotation.value)
    return ast.unparse(annotation)


def _normalize(source: str) -> str:
    try:
        return ast.unparse(ast.parse(source, mode="eval").body)
    except SyntaxError:
        return source.strip()
