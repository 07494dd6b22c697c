# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structural schemas describing the expected shape of exported functions and classes."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############


class FieldSchema(BaseModel):
    """An expected parameter (for functions) or attribute (for classes).

    Attributes:
        name: The expected name.
        annotation: Expected annotation as Python source (e.g. ``"dict[str, str]"``).
            ``None`` accepts any annotation.
        required: Whether the parameter or attribute must be present.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    annotation: str | None = None
    required: bool = True


class Schema(BaseModel):
    """Expected structure of a named export.

    Attributes:
        kind: Whether the export must be a function or a class.
        parameters: Expected positional parameters, in call order (functions).
        returns: Expected return annotation; ``None`` accepts any (functions).
        is_async: Whether the function must (``True``) or must not (``False``)
            be a coroutine function; ``None`` accepts both.
        fields: Expected class attributes or methods (classes).
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["function", "class"] = "function"
    parameters: list[FieldSchema] = _Field(default_factory=list)
    returns: str | None = None
    is_async: bool | None = None
    fields: list[FieldSchema] = _Field(default_factory=list)
