# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for the Sherpa documentation."""

project = "Sherpa"
author = "Sherpa Contributors"
release = "0.1.0"

extensions: list[str] = ["sphinx.ext.autodoc"]

html_theme = "alabaster"
