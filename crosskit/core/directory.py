"""
Directory layout for crosskit.

All artifacts live under a single base directory shared by every project on
the machine:

    Base (~/.tessel/, or $CROSSKIT_HOME):
        - sdk/<platform>/   : Extracted cross-compilation SDK + CHECKSUM
        - rust/<version>/   : Extracted MIPS standard library bundle + CHECKSUM
        - lock/             : Lock files guarding install roots
        - crosskit.yaml     : Optional user configuration
"""

import os
from pathlib import Path


HOME_ENV_VAR = "CROSSKIT_HOME"


def get_base_dir() -> Path:
    """
    Get the base directory that holds every installed artifact.

    Returns:
        ``$CROSSKIT_HOME`` when set, otherwise ``~/.tessel``

    Example:
        >>> get_base_dir()
        PosixPath('/home/user/.tessel')  # on Linux
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".tessel"


def get_sdk_root() -> Path:
    """Directory holding one SDK install root per host platform."""
    return get_base_dir() / "sdk"


def get_rustlib_root() -> Path:
    """Directory holding one standard library bundle per compiler version."""
    return get_base_dir() / "rust"


def get_lock_dir() -> Path:
    """Directory holding lock files."""
    return get_base_dir() / "lock"


def get_default_config_path() -> Path:
    """Location of the optional user configuration file."""
    return get_base_dir() / "crosskit.yaml"
