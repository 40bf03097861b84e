"""
Tests for crosskit.yaml parsing and validation.
"""

import pytest

from crosskit.config import ConfigError, CrossKitConfig, load_config, parse_config
from crosskit.config.parser import (
    DEFAULT_RUSTLIB_URL,
    DEFAULT_SDK_URLS,
    DEFAULT_TARGET,
    DEFAULT_TIMEOUT,
)


class TestDefaults:
    """Test default configuration."""

    def test_defaults_follow_base_dir(self, isolated_home):
        """Test default roots live under the base directory."""
        config = CrossKitConfig()

        assert config.sdk_root == isolated_home / "sdk"
        assert config.rustlib_root == isolated_home / "rust"
        assert config.lock_dir == isolated_home / "lock"
        assert config.sdk_urls == DEFAULT_SDK_URLS
        assert config.rustlib_url == DEFAULT_RUSTLIB_URL
        assert config.target == DEFAULT_TARGET
        assert config.timeout == DEFAULT_TIMEOUT

    def test_sdk_urls_not_shared(self, isolated_home):
        """Test each config gets its own URL mapping."""
        first = CrossKitConfig()
        first.sdk_urls["linux"] = "https://mirror.example.com/sdk.tar.bz2"

        assert CrossKitConfig().sdk_urls["linux"] == DEFAULT_SDK_URLS["linux"]


class TestLoadConfig:
    """Test load_config function."""

    def test_missing_default_file(self, isolated_home):
        """Test defaults are used when no file exists."""
        assert load_config() == CrossKitConfig()

    def test_default_file_used(self, isolated_home):
        """Test the file in the base directory is picked up."""
        (isolated_home / "crosskit.yaml").write_text("target: custom\n")

        assert load_config().target == "custom"

    def test_explicit_missing_file(self, tmp_path):
        """Test an explicit path must exist."""
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")


class TestParseConfig:
    """Test parse_config function."""

    def test_full_config(self, tmp_path, isolated_home):
        """Test every field is parsed."""
        config_file = tmp_path / "crosskit.yaml"
        config_file.write_text(
            """
sdk_root: /opt/tessel/sdk
rustlib_root: rust
lock_dir: ~/locks
sdk_urls:
  linux: https://mirror.example.com/t2-sdk-linux-x86_64.tar.bz2
rustlib_url: https://mirror.example.com/t2-rustlib-VERSION.tar.gz
target: tessel2
timeout: 60
"""
        )

        config = parse_config(config_file)

        assert str(config.sdk_root).replace("\\", "/").endswith("/opt/tessel/sdk")
        assert config.rustlib_root == tmp_path / "rust"
        assert "~" not in str(config.lock_dir)
        assert config.sdk_urls["linux"].startswith("https://mirror.example.com/")
        assert config.sdk_urls["macos"] == DEFAULT_SDK_URLS["macos"]
        assert config.rustlib_url.endswith("t2-rustlib-VERSION.tar.gz")
        assert config.timeout == 60

    def test_empty_file(self, tmp_path, isolated_home):
        """Test an empty file yields defaults."""
        config_file = tmp_path / "crosskit.yaml"
        config_file.write_text("")

        assert parse_config(config_file) == CrossKitConfig()

    def test_invalid_yaml(self, tmp_path):
        """Test YAML syntax errors are reported."""
        config_file = tmp_path / "crosskit.yaml"
        config_file.write_text("target: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            parse_config(config_file)

    def test_not_a_mapping(self, tmp_path):
        """Test top-level lists are rejected."""
        config_file = tmp_path / "crosskit.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must be a mapping"):
            parse_config(config_file)

    def test_unknown_key(self, tmp_path):
        """Test typos are reported instead of ignored."""
        config_file = tmp_path / "crosskit.yaml"
        config_file.write_text("sdk_rot: /tmp\n")

        with pytest.raises(ConfigError, match="Unknown configuration keys: sdk_rot"):
            parse_config(config_file)

    def test_unknown_platform(self, tmp_path):
        """Test SDK URLs only exist for supported platforms."""
        config_file = tmp_path / "crosskit.yaml"
        config_file.write_text("sdk_urls:\n  windows: https://example.com/sdk.zip\n")

        with pytest.raises(ConfigError, match="Invalid SDK platform: windows"):
            parse_config(config_file)

    def test_rustlib_url_requires_placeholder(self, tmp_path):
        """Test the libstd URL must contain VERSION."""
        config_file = tmp_path / "crosskit.yaml"
        config_file.write_text("rustlib_url: https://example.com/t2-rustlib.tar.gz\n")

        with pytest.raises(ConfigError, match="VERSION"):
            parse_config(config_file)

    @pytest.mark.parametrize("value", ["0", "-5", "true", "fast"])
    def test_invalid_timeout(self, tmp_path, value):
        """Test timeout must be a positive integer."""
        config_file = tmp_path / "crosskit.yaml"
        config_file.write_text(f"timeout: {value}\n")

        with pytest.raises(ConfigError, match="timeout"):
            parse_config(config_file)
