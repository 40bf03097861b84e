"""YAML configuration parser for crosskit.

This module provides parsing and validation for the optional crosskit.yaml
file. Every field is optional; anything left out falls back to the published
artifact locations and the base directory layout.

Example crosskit.yaml:

    sdk_root: ~/tessel/sdk
    sdk_urls:
      linux: https://mirror.example.com/t2-sdk-linux-x86_64.tar.bz2
    rustlib_url: https://mirror.example.com/t2-rustlib-VERSION.tar.gz
    target: tessel2
    timeout: 60
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from crosskit.core.directory import (
    get_default_config_path,
    get_lock_dir,
    get_rustlib_root,
    get_sdk_root,
)
from crosskit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SDK_URLS = {
    "macos": "https://builds.tessel.io/t2/sdk/t2-sdk-macos-x86_64.tar.bz2",
    "linux": "https://builds.tessel.io/t2/sdk/t2-sdk-linux-x86_64.tar.bz2",
}

DEFAULT_RUSTLIB_URL = "https://builds.tessel.io/t2/sdk/t2-rustlib-VERSION.tar.gz"

VERSION_PLACEHOLDER = "VERSION"

DEFAULT_TARGET = "tessel2"
DEFAULT_TIMEOUT = 30


@dataclass
class CrossKitConfig:
    """Complete crosskit configuration."""

    sdk_root: Path = field(default_factory=get_sdk_root)
    rustlib_root: Path = field(default_factory=get_rustlib_root)
    lock_dir: Path = field(default_factory=get_lock_dir)
    sdk_urls: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SDK_URLS))
    rustlib_url: str = DEFAULT_RUSTLIB_URL
    target: str = DEFAULT_TARGET
    timeout: int = DEFAULT_TIMEOUT


def load_config(config_path: Optional[Path] = None) -> CrossKitConfig:
    """
    Load configuration, falling back to defaults.

    Args:
        config_path: Explicit configuration file. When None, the default
            location is used if it exists.

    Returns:
        Parsed configuration

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid
    """
    if config_path is not None:
        return parse_config(Path(config_path))

    default_path = get_default_config_path()
    if default_path.exists():
        return parse_config(default_path)

    logger.debug(f"Config file not found (optional): {default_path}")
    return CrossKitConfig()


def parse_config(config_path: Path) -> CrossKitConfig:
    """
    Parse crosskit.yaml configuration file.

    Args:
        config_path: Path to crosskit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    logger.debug(f"Loading configuration from {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        return CrossKitConfig()

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    return _parse_and_validate(data, config_path.parent)


def _parse_and_validate(data: dict, base_dir: Path) -> CrossKitConfig:
    """Parse and validate configuration data."""
    known = {
        "sdk_root",
        "rustlib_root",
        "lock_dir",
        "sdk_urls",
        "rustlib_url",
        "target",
        "timeout",
    }
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    config = CrossKitConfig()

    for key in ("sdk_root", "rustlib_root", "lock_dir"):
        if key in data:
            setattr(config, key, _parse_path(data[key], key, base_dir))

    if "sdk_urls" in data:
        config.sdk_urls.update(_parse_sdk_urls(data["sdk_urls"]))

    if "rustlib_url" in data:
        url = data["rustlib_url"]
        if not isinstance(url, str) or VERSION_PLACEHOLDER not in url:
            raise ConfigError(
                f"rustlib_url must be a string containing the '{VERSION_PLACEHOLDER}' placeholder"
            )
        config.rustlib_url = url

    if "target" in data:
        if not isinstance(data["target"], str) or not data["target"]:
            raise ConfigError("target must be a non-empty string")
        config.target = data["target"]

    if "timeout" in data:
        timeout = data["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
            raise ConfigError(f"timeout must be a positive integer, got {timeout!r}")
        config.timeout = timeout

    return config


def _parse_path(value, key: str, base_dir: Path) -> Path:
    """Parse a path field, resolving relative paths against the config file."""
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{key} must be a non-empty string")

    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


def _parse_sdk_urls(data) -> Dict[str, str]:
    """Parse per-platform SDK URL overrides."""
    if not isinstance(data, dict):
        raise ConfigError("sdk_urls must be a mapping of platform to URL")

    urls = {}
    for platform, url in data.items():
        if platform not in DEFAULT_SDK_URLS:
            raise ConfigError(
                f"Invalid SDK platform: {platform} "
                f"(expected one of {sorted(DEFAULT_SDK_URLS)})"
            )
        if not isinstance(url, str) or not url:
            raise ConfigError(f"sdk_urls.{platform} must be a non-empty string")
        urls[platform] = url

    return urls
