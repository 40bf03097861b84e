"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
from typing import Callable

from crosskit.config.parser import CrossKitConfig, load_config
from crosskit.core.download import DownloadProgress, format_progress
from crosskit.toolchain.installer import ArtifactInstaller

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Management
# ============================================================================


def load_cli_config(args) -> CrossKitConfig:
    """
    Load configuration for a command.

    Args:
        args: Parsed arguments (uses ``args.config`` if set)

    Raises:
        ConfigError: If the configuration file is invalid
    """
    return load_config(getattr(args, "config", None))


def create_installer(args) -> ArtifactInstaller:
    """Create an installer from the command's configuration."""
    return ArtifactInstaller(load_cli_config(args))


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def progress_logger(label: str) -> Callable[[DownloadProgress], None]:
    """
    Create a download progress callback that logs progress lines.

    The download stream already limits reports to one every 0.5 seconds.

    Args:
        label: Name of what is being downloaded (e.g., 'SDK')
    """

    def report(progress: DownloadProgress):
        logger.info(f"  {label}: {format_progress(progress)}")

    return report
