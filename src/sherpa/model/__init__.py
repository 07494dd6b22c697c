# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model for Sherpa builds (options, diagnostics, schemas, project structure)."""

from sherpa.model.messages import Location, Message, Severity, has_errors
from sherpa.model.options import BuildOptions, BundlerOverrides, BundlerType, DeveloperOptions
from sherpa.model.project import (
    HANDLER_SCHEMA,
    HTTP_METHODS,
    Endpoint,
    EndpointConfig,
    Project,
    ServerConfig,
)
from sherpa.model.schema import FieldSchema, Schema

__all__ = [
    # Options
    "BundlerType",
    "BuildOptions",
    "DeveloperOptions",
    "BundlerOverrides",
    # Diagnostics
    "Severity",
    "Location",
    "Message",
    "has_errors",
    # Schemas
    "FieldSchema",
    "Schema",
    # Project
    "HTTP_METHODS",
    "HANDLER_SCHEMA",
    "EndpointConfig",
    "ServerConfig",
    "Endpoint",
    "Project",
]
