"""
Install command implementation.

Downloads, verifies and installs the SDK and the MIPS libstd.
"""

import logging

from crosskit.cli.utils import create_installer, progress_logger

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Installs both artifacts unless ``--sdk`` or ``--stdlib`` narrows it down.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    install_sdk = args.sdk or not args.stdlib
    install_stdlib = args.stdlib or not args.sdk

    installer = create_installer(args)

    if install_sdk:
        installer.install_sdk(
            progress_callback=progress_logger("SDK"), force=args.force
        )

    if install_stdlib:
        installer.install_stdlib(
            version=args.rust_version,
            progress_callback=progress_logger("MIPS libstd"),
            force=args.force,
        )

    return 0
