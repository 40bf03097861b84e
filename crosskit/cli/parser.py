"""
crosskit CLI argument parser.

This module implements the command-line interface for crosskit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from crosskit.core.exceptions import BuildProcessError, CrossKitError

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("crosskit")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """crosskit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="crosskit",
            description="crosskit - Rust cross-compilation toolchains for Tessel 2",
            epilog='Use "crosskit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"crosskit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ~/.tessel/crosskit.yaml)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_status_command(subparsers)
        self._add_build_command(subparsers)
        self._add_toolchain_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install or update the SDK and MIPS libstd",
            description=(
                "Download, verify and install the cross-compilation SDK and the "
                "MIPS libstd matching the local Rust compiler"
            ),
        )
        parser.add_argument("--sdk", action="store_true", help="Install only the SDK")
        parser.add_argument(
            "--stdlib", action="store_true", help="Install only the MIPS libstd"
        )
        parser.add_argument(
            "--rust-version",
            metavar="VERSION",
            help="Compiler version to install libstd for (default: from rustc -V)",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Reinstall even if the installed copy is up to date",
        )

    def _add_status_command(self, subparsers):
        """Add 'status' subcommand."""
        subparsers.add_parser(
            "status",
            help="Show installed artifacts",
            description="Show which artifacts are installed locally",
        )

    def _add_build_command(self, subparsers):
        """Add 'build' subcommand."""
        parser = subparsers.add_parser(
            "build",
            help="Cross-compile and bundle a binary",
            description="Cross-compile a binary with cargo and bundle it for deployment",
        )
        parser.add_argument(
            "--bin",
            metavar="NAME",
            help="Binary to build (default: the only binary in the project)",
        )
        parser.add_argument(
            "--target",
            metavar="TARGET",
            help="Cargo target (default: from config, tessel2)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=None,
            help="Project root directory (default: current directory)",
        )

    def _add_toolchain_command(self, subparsers):
        """Add 'toolchain' subcommand."""
        subparsers.add_parser(
            "toolchain",
            help="Print the resolved toolchain path",
            description="Print the path of the cross toolchain inside the installed SDK",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, the child's status for a failed build,
            non-zero for other errors)
        """
        parsed_args = self.parse_args(args)

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except BuildProcessError as e:
            logger.error(f"Error: {e}")
            return e.exit_code
        except CrossKitError as e:
            logger.error(f"Error: {e}")
            hint = getattr(e, "hint", None)
            if hint:
                logger.error(f"  {hint}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        # Command module mapping
        command_map = {
            "install": "crosskit.cli.commands.install",
            "status": "crosskit.cli.commands.status",
            "build": "crosskit.cli.commands.build",
            "toolchain": "crosskit.cli.commands.toolchain",
        }

        module = importlib.import_module(command_map[args.command])
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
