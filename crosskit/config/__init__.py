"""Configuration module for crosskit.

This module provides YAML configuration parsing and validation for crosskit.yaml.
"""

from crosskit.config.parser import (
    CrossKitConfig,
    load_config,
    parse_config,
)
from crosskit.core.exceptions import ConfigError

__all__ = [
    "CrossKitConfig",
    "ConfigError",
    "load_config",
    "parse_config",
]
