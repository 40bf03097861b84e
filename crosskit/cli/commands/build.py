"""
Build command implementation.

Cross-compiles a binary with cargo and bundles it for deployment.
"""

import dataclasses
import logging
from pathlib import Path

from crosskit.build.orchestrator import (
    binary_path,
    binary_targets,
    build,
    bundle,
    cargo_metadata,
)
from crosskit.cli.utils import create_installer
from crosskit.core.exceptions import NotFoundError
from crosskit.toolchain.resolver import resolve_build_config

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the build command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)

    Raises:
        NotFoundError: If an artifact is missing or the binary is ambiguous
        BuildProcessError: If cargo fails
    """
    project_root = Path(args.project_root or Path.cwd()).resolve()
    installer = create_installer(args)
    target = args.target or installer.config.target

    config = resolve_build_config(installer)

    metadata = cargo_metadata(cwd=project_root)
    name = args.bin or _default_binary(metadata)

    config = dataclasses.replace(
        config, name=name, path=binary_path(metadata, name, target)
    )
    build(config, target=target, cwd=project_root)

    tarball = bundle(config)
    print(tarball)
    return 0


def _default_binary(metadata) -> str:
    """Pick the binary when the project declares exactly one."""
    names = binary_targets(metadata)
    if len(names) == 1:
        return names[0]
    if not names:
        raise NotFoundError("No binary target found in the project.")
    raise NotFoundError(
        f"Multiple binary targets found: {', '.join(names)}.",
        hint="Choose one with --bin NAME.",
    )
