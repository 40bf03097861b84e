"""
Toolchain command implementation.

Prints the cross toolchain directory inside the installed SDK.
"""

import logging

from crosskit.cli.utils import create_installer
from crosskit.core.exceptions import NotFoundError
from crosskit.toolchain.resolver import locate_toolchain

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the toolchain command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)

    Raises:
        NotFoundError: If the SDK or its toolchain is missing
    """
    installer = create_installer(args)

    sdk_state = installer.check_sdk()
    if not sdk_state.exists:
        raise NotFoundError(
            "SDK not installed.", hint="Run 'crosskit install --sdk' first."
        )

    print(locate_toolchain(sdk_state.path))
    return 0
