# Copyright 2026 Sherpa Contributors
# SPDX-License-Identifier: Apache-2.0

"""Deployment targets, one per bundler type, each synthesizing its own entrypoints."""

from sherpa.model.options import BundlerType
from sherpa.targets.base import Entrypoint, Target
from sherpa.targets.express import ExpressTarget
from sherpa.targets.vercel import VercelTarget

_TARGETS: dict[BundlerType, Target] = {
    BundlerType.VERCEL: VercelTarget(),
    BundlerType.EXPRESS_JS: ExpressTarget(),
}


def target_for(bundler: BundlerType) -> Target:
    """Return the target that packages projects for *bundler*."""
    return _TARGETS[bundler]


__all__ = [
    "Entrypoint",
    "Target",
    "VercelTarget",
    "ExpressTarget",
    "target_for",
]
