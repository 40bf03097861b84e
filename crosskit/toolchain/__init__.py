"""
Toolchain management module for crosskit.

This module provides functionality for:
- Describing the installable artifacts (SDK, MIPS libstd)
- Installing them through a verified streaming download
- Detecting the local compiler version
- Resolving the paths a cross build needs
"""

from crosskit.toolchain.artifacts import (
    Artifact,
    ArtifactKind,
    Codec,
    sdk_artifact,
    stdlib_artifact,
)
from crosskit.toolchain.compiler import rust_version
from crosskit.toolchain.installer import (
    ArtifactInstaller,
    DownloadSession,
    InstallResult,
    InstallTransaction,
)
from crosskit.toolchain.resolver import (
    BuildConfig,
    locate_toolchain,
    resolve_build_config,
)

__all__ = [
    "Artifact",
    "ArtifactKind",
    "Codec",
    "sdk_artifact",
    "stdlib_artifact",
    "rust_version",
    "ArtifactInstaller",
    "DownloadSession",
    "InstallResult",
    "InstallTransaction",
    "BuildConfig",
    "locate_toolchain",
    "resolve_build_config",
]
