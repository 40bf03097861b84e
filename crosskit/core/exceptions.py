"""
Centralized exception hierarchy for crosskit.

This module defines all custom exceptions used across the codebase so that
callers can tell apart the failure modes of the install pipeline, the
toolchain resolver and the external build tool.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class CrossKitError(Exception):
    """Base exception for all crosskit errors."""

    pass


class ConfigError(CrossKitError):
    """Configuration parsing or validation error."""

    pass


class UnsupportedPlatformError(CrossKitError):
    """Host platform has no published SDK."""

    pass


# ============================================================================
# Install Pipeline Exceptions
# ============================================================================


class InstallError(CrossKitError):
    """Base exception for failures inside an install transaction."""

    pass


class FetchError(InstallError):
    """Remote digest or archive is unavailable (non-2xx or transport error)."""

    pass


class DownloadError(InstallError):
    """The archive stream failed while it was being consumed."""

    pass


class ChecksumError(InstallError):
    """Computed digest disagrees with the published one."""

    pass


class ExtractError(InstallError):
    """Decompression or unpacking of the archive failed."""

    pass


class MoveError(InstallError):
    """Replacing the install root with the freshly extracted tree failed."""

    pass


# ============================================================================
# Resolution Exceptions
# ============================================================================


class NotFoundError(CrossKitError):
    """An expected local artifact or toolchain is missing."""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.hint = hint
        super().__init__(message)


class CompilerVersionError(NotFoundError):
    """The local compiler version could not be determined."""

    pass


# ============================================================================
# Build Exceptions
# ============================================================================


class BuildProcessError(CrossKitError):
    """
    External build tool exited with a non-zero status.

    This is a fatal condition. Only the top-level entry point converts it into
    a process exit, using ``exit_code`` verbatim.
    """

    def __init__(self, command: str, exit_code: int):
        self.command = command
        self.exit_code = exit_code
        super().__init__(f"'{command}' exited with status {exit_code}")
