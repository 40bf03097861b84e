"""
Build orchestration for crosskit.

Runs cargo against the installed toolchain and bundles the result.
"""

from crosskit.build.orchestrator import (
    build,
    build_environment,
    bundle,
    cargo_metadata,
)

__all__ = [
    "build",
    "build_environment",
    "bundle",
    "cargo_metadata",
]
