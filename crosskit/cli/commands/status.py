"""
Status command implementation.

Reports which artifacts are installed, from local markers only.
"""

import logging

from crosskit.cli.utils import create_installer
from crosskit.core.exceptions import CompilerVersionError
from crosskit.toolchain.compiler import rust_version

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the status command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 if both artifacts are installed, 1 otherwise)
    """
    installer = create_installer(args)

    sdk_state = installer.check_sdk()
    print(f"SDK ({installer.platform}): {_describe(sdk_state.exists)}")
    print(f"  {sdk_state.path}")

    try:
        version = rust_version()
    except CompilerVersionError as e:
        print(f"MIPS libstd: unknown ({e})")
        return 1

    stdlib_state = installer.check_stdlib(version)
    print(f"MIPS libstd v{version}: {_describe(stdlib_state.exists)}")
    print(f"  {stdlib_state.path}")

    return 0 if sdk_state.exists and stdlib_state.exists else 1


def _describe(installed: bool) -> str:
    return "installed" if installed else "not installed"
