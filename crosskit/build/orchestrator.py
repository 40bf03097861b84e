"""
Cross build orchestration.

Runs ``cargo`` against the installed SDK and standard library bundle and
packages the resulting binary. A non-zero exit of ``cargo`` is fatal: it is
raised as BuildProcessError carrying the child's exit status, and only the
command-line entry point turns that into a process exit.
"""

import json
import logging
import os
import subprocess
import tarfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from crosskit.config.parser import DEFAULT_TARGET
from crosskit.core.exceptions import BuildProcessError, NotFoundError
from crosskit.toolchain.resolver import BuildConfig

logger = logging.getLogger(__name__)

BUNDLE_FILENAME = "tessel-bundle.tar"

CARGO_HINT = "Install Rust and cargo, e.g. with rustup (https://rustup.rs)."


def build_environment(
    config: BuildConfig, base_env: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Build the environment for a cross build.

    Args:
        config: Resolved build configuration
        base_env: Environment to extend (default: os.environ)

    Returns:
        New environment dictionary; base_env is not modified
    """
    env = dict(os.environ if base_env is None else base_env)
    search_path = env.get("PATH", "")
    toolchain_bin = str(Path(config.toolchain_path) / "bin")

    env.update(
        {
            "STAGING_DIR": str(config.staging_dir),
            "RUST_TARGET_PATH": str(config.stdlib_path),
            "PATH": f"{toolchain_bin}{os.pathsep}{search_path}"
            if search_path
            else toolchain_bin,
            "RUSTFLAGS": f"-L {config.stdlib_path}",
        }
    )
    return env


def build_command(config: BuildConfig, target: str = DEFAULT_TARGET) -> List[str]:
    """Command line used to build config.name for target."""
    if not config.name:
        raise ValueError("BuildConfig.name is required to build")
    return ["cargo", "build", f"--target={target}", "--bin", config.name, "--release"]


def build(
    config: BuildConfig,
    target: str = DEFAULT_TARGET,
    cwd: Optional[Union[str, Path]] = None,
) -> None:
    """
    Run the cross build.

    Standard input is closed; output streams are inherited so cargo's
    progress reaches the terminal unchanged.

    Args:
        config: Resolved build configuration
        target: Cargo target name
        cwd: Project directory (default: current directory)

    Raises:
        BuildProcessError: If cargo exits with a non-zero status
        NotFoundError: If cargo cannot be executed
    """
    cmd = build_command(config, target)
    logger.info(f"Building {config.name} for {target}...")
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            env=build_environment(config),
            stdin=subprocess.DEVNULL,
            cwd=cwd,
        )
    except OSError as e:
        raise NotFoundError(f"Failed to execute cargo: {e}", hint=CARGO_HINT) from e

    if result.returncode != 0:
        raise BuildProcessError(" ".join(cmd), result.returncode)


def cargo_metadata(cwd: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Query package metadata of the current project.

    Runs ``cargo metadata --no-deps``; stderr is inherited.

    Returns:
        Parsed metadata document

    Raises:
        BuildProcessError: If cargo exits with a non-zero status
        NotFoundError: If cargo cannot be executed
    """
    cmd = ["cargo", "metadata", "--no-deps", "--format-version", "1"]
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        raise NotFoundError(f"Failed to execute cargo: {e}", hint=CARGO_HINT) from e

    if result.returncode != 0:
        raise BuildProcessError(" ".join(cmd), result.returncode)

    return json.loads(result.stdout.decode("utf-8"))


def binary_targets(metadata: Dict[str, Any]) -> List[str]:
    """Names of all binary targets declared by the packages in metadata."""
    names = []
    for package in metadata.get("packages", []):
        for target in package.get("targets", []):
            if "bin" in target.get("kind", []):
                names.append(target["name"])
    return names


def binary_path(
    metadata: Dict[str, Any], name: str, target: str = DEFAULT_TARGET
) -> Path:
    """Location cargo writes a release binary to for target."""
    return Path(metadata["target_directory"]) / target / "release" / name


def bundle(config: BuildConfig) -> Path:
    """
    Package the built binary into an uncompressed tarball next to it.

    The archive holds a single entry named after the binary.

    Args:
        config: Build configuration with ``path`` set to the built binary

    Returns:
        Path of the written tarball
    """
    if config.path is None:
        raise ValueError("BuildConfig.path is required to bundle")

    binary = Path(config.path)
    tarball = binary.parent / BUNDLE_FILENAME

    with tarfile.open(tarball, "w") as tar:
        tar.add(binary, arcname=binary.name)

    logger.info(f"Bundled {binary.name} into {tarball}")
    return tarball
