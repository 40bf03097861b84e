"""
Host platform detection.

SDK archives are published per host OS. The identifiers follow the names the
Rust standard library uses for ``std::env::consts::OS`` ('macos', 'linux'),
not Python's ``sys.platform`` values, so they have to be mapped.
"""

import sys
from typing import Optional

from crosskit.core.exceptions import UnsupportedPlatformError

_PLATFORM_MAP = {
    "darwin": "macos",
    "linux": "linux",
}


def get_platform(system: Optional[str] = None) -> str:
    """
    Get the SDK platform identifier for the host.

    Args:
        system: Value to map instead of ``sys.platform`` (used by tests)

    Returns:
        'macos' or 'linux'

    Raises:
        UnsupportedPlatformError: If no SDK is published for this host

    Example:
        >>> get_platform("darwin")
        'macos'
    """
    system = system if system is not None else sys.platform

    try:
        return _PLATFORM_MAP[system]
    except KeyError:
        raise UnsupportedPlatformError(
            "Your platform is not yet supported for cross-compilation."
        ) from None
