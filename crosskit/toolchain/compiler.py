"""
Detection of the locally active Rust compiler.

The standard library bundle has to match the compiler that links against it,
so its install root and download URL are keyed by the version ``rustc``
reports.
"""

import logging
import re
import subprocess
from typing import Optional

from packaging.version import InvalidVersion, Version

from crosskit.core.exceptions import CompilerVersionError, NotFoundError

logger = logging.getLogger(__name__)

RUSTC_VERSION_PATTERN = re.compile(r"^rustc\s+(\S+)")

MIN_STDLIB_VERSION = Version("1.11.0")

INSTALL_HINT = "Install a stable Rust toolchain, e.g. with rustup (https://rustup.rs)."


def rust_version(rustc: str = "rustc") -> str:
    """
    Get the version of the active Rust compiler.

    Args:
        rustc: Compiler executable to query

    Returns:
        Version string as printed by ``rustc -V`` (e.g., '1.14.0')

    Raises:
        CompilerVersionError: If rustc is missing or its output is unexpected

    Example:
        >>> rust_version()
        '1.14.0'
    """
    try:
        result = subprocess.run(
            [rustc, "-V"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise CompilerVersionError(
            "Could not identify locally installed rust version.", hint=INSTALL_HINT
        ) from e

    match = RUSTC_VERSION_PATTERN.match(result.stdout or "")
    if result.returncode != 0 or not match:
        logger.debug(f"Unexpected rustc output: {result.stdout!r} {result.stderr!r}")
        raise CompilerVersionError(
            "Could not identify locally installed rust version.", hint=INSTALL_HINT
        )

    version = match.group(1)
    logger.debug(f"Detected rustc {version}")
    return version


def unsupported_stdlib_error(version: Optional[str]) -> NotFoundError:
    """Build the error reported when no bundle exists for a compiler version."""
    return NotFoundError(
        f"Could not find a MIPS libstd matching your current Rust version ({version}). "
        f"Only stable Rust versions >= {MIN_STDLIB_VERSION} are supported.",
        hint=INSTALL_HINT,
    )


def check_stdlib_supported(version: str) -> None:
    """
    Reject compiler versions for which no bundle is ever published.

    Versions that do not parse are left to the remote lookup to decide.

    Raises:
        NotFoundError: If the version is older than 1.11.0 or a pre-release
    """
    try:
        parsed = Version(version)
    except InvalidVersion:
        return

    if parsed < MIN_STDLIB_VERSION or parsed.is_prerelease:
        raise unsupported_stdlib_error(version)
