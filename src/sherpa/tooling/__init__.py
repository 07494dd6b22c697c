# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compilation tooling: resolution, static analysis, sandboxed extraction, validation, and emission."""

from sherpa.tooling.analyzer import (
    AnalysisError,
    Declaration,
    get_exported_declarations,
    get_exported_variable_names,
    has_default_export,
)
from sherpa.tooling.bundler import (
    ATTRIBUTION,
    DEFAULT_BUNDLER_OPTIONS,
    BuildError,
    BundlerOptions,
    StdinOptions,
    bundle,
    merge_bundler_options,
)
from sherpa.tooling.emitter import ENVIRONMENT_ACCESSOR, build, effective_options, environment_define
from sherpa.tooling.environment import get_environment_variables
from sherpa.tooling.resolver import SHARED_DEPENDENCY_DIRECTORY, resolve
from sherpa.tooling.sandbox import ExtractionError, get_default_export
from sherpa.tooling.validation import type_check

__all__ = [
    # Resolution
    "resolve",
    "SHARED_DEPENDENCY_DIRECTORY",
    # Static analysis
    "AnalysisError",
    "Declaration",
    "get_exported_declarations",
    "get_exported_variable_names",
    "has_default_export",
    # Sandboxed extraction
    "ExtractionError",
    "get_default_export",
    # Validation
    "type_check",
    # Bundling and emission
    "ATTRIBUTION",
    "BuildError",
    "BundlerOptions",
    "StdinOptions",
    "DEFAULT_BUNDLER_OPTIONS",
    "bundle",
    "merge_bundler_options",
    "ENVIRONMENT_ACCESSOR",
    "build",
    "effective_options",
    "environment_define",
    "get_environment_variables",
]
