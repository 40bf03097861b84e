"""
Resolution of the paths a cross build needs.

A build needs the compiler version, the cross toolchain inside the installed
SDK, and the standard library bundle matching the compiler. This module
checks that all of them are installed and collects them into a BuildConfig.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from crosskit.core.exceptions import NotFoundError
from crosskit.toolchain.compiler import rust_version
from crosskit.toolchain.installer import ArtifactInstaller

logger = logging.getLogger(__name__)

TOOLCHAIN_PREFIX = "toolchain-"


@dataclass(frozen=True)
class BuildConfig:
    """Everything the build step needs, resolved to concrete paths."""

    compiler_version: str
    """Version reported by rustc"""

    toolchain_path: Path
    """Cross toolchain directory inside the SDK"""

    staging_dir: Path
    """SDK install root, exported as STAGING_DIR"""

    stdlib_path: Path
    """Install root of the matching standard library bundle"""

    name: Optional[str] = None
    """Name of the binary to build"""

    path: Optional[Path] = None
    """Path of the built binary, bundled after the build"""


def locate_toolchain(sdk_platform_root: Path) -> Path:
    """
    Find the cross toolchain directory inside an installed SDK.

    The toolchain is the entry of the SDK root whose name starts with
    ``toolchain-``. If several match, the lexicographically greatest name
    wins and a warning is logged.

    Args:
        sdk_platform_root: Install root of the SDK for this platform

    Returns:
        Full path of the toolchain directory

    Raises:
        NotFoundError: If the root is unreadable or nothing matches

    Example:
        >>> locate_toolchain(Path("~/.tessel/sdk/linux").expanduser())
        PosixPath('/home/user/.tessel/sdk/linux/toolchain-mipsel_24kc_gcc-5.4.0_musl')
    """
    sdk_platform_root = Path(sdk_platform_root)
    try:
        candidates = sorted(
            entry.name
            for entry in sdk_platform_root.iterdir()
            if entry.name.startswith(TOOLCHAIN_PREFIX)
        )
    except OSError as e:
        raise NotFoundError(
            "No toolchain found.", hint="Run 'crosskit install --sdk' first."
        ) from e

    if not candidates:
        raise NotFoundError(
            "No toolchain found.", hint="Run 'crosskit install --sdk' first."
        )

    if len(candidates) > 1:
        logger.warning(
            f"Multiple toolchains in {sdk_platform_root}: {', '.join(candidates)}. "
            f"Using {candidates[-1]}."
        )

    return sdk_platform_root / candidates[-1]


def resolve_build_config(
    installer: ArtifactInstaller,
    name: Optional[str] = None,
    path: Optional[Path] = None,
    compiler_version: Optional[str] = None,
) -> BuildConfig:
    """
    Verify the SDK and matching standard library are installed.

    Only the local CHECKSUM markers are inspected; nothing is downloaded.

    Args:
        installer: Installer describing where artifacts live
        name: Binary to build
        path: Path of the built binary
        compiler_version: Compiler version. If None, taken from ``rustc -V``.

    Returns:
        BuildConfig with resolved paths

    Raises:
        CompilerVersionError: If the compiler version cannot be determined
        NotFoundError: If the SDK, the toolchain or the bundle is missing
    """
    if compiler_version is None:
        compiler_version = rust_version()

    sdk_state = installer.check_sdk()
    if not sdk_state.exists:
        raise NotFoundError(
            "SDK not installed.", hint="Run 'crosskit install --sdk' first."
        )

    stdlib_state = installer.check_stdlib(compiler_version)
    if not stdlib_state.exists:
        raise NotFoundError(
            f"MIPS libstd v{compiler_version} not installed.",
            hint="Run 'crosskit install --stdlib' first.",
        )

    toolchain_path = locate_toolchain(sdk_state.path)
    logger.debug(f"Resolved toolchain: {toolchain_path}")

    return BuildConfig(
        compiler_version=compiler_version,
        toolchain_path=toolchain_path,
        staging_dir=sdk_state.path,
        stdlib_path=stdlib_state.path,
        name=name,
        path=Path(path) if path is not None else None,
    )
