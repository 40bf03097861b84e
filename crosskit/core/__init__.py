"""
Core functionality for crosskit.

This package contains the foundational modules that other components depend on:
the exception hierarchy, directory layout, downloads, the streaming
decompression stages, filesystem helpers, install state and locking.
"""

from .directory import (
    get_base_dir,
    get_sdk_root,
    get_rustlib_root,
    get_lock_dir,
    get_default_config_path,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .platform import get_platform

from .state import (
    CHECKSUM_FILENAME,
    ArtifactState,
    check_artifact,
    read_marker,
)

from .exceptions import (
    CrossKitError,
    ConfigError,
    UnsupportedPlatformError,
    InstallError,
    FetchError,
    DownloadError,
    ChecksumError,
    ExtractError,
    MoveError,
    NotFoundError,
    CompilerVersionError,
    BuildProcessError,
)

__all__ = [
    # Directory
    "get_base_dir",
    "get_sdk_root",
    "get_rustlib_root",
    "get_lock_dir",
    "get_default_config_path",
    # Locking
    "LockManager",
    "LockTimeout",
    # Platform
    "get_platform",
    # State
    "CHECKSUM_FILENAME",
    "ArtifactState",
    "check_artifact",
    "read_marker",
    # Exceptions
    "CrossKitError",
    "ConfigError",
    "UnsupportedPlatformError",
    "InstallError",
    "FetchError",
    "DownloadError",
    "ChecksumError",
    "ExtractError",
    "MoveError",
    "NotFoundError",
    "CompilerVersionError",
    "BuildProcessError",
]
