"""
Tests for build configuration resolution.
"""

import logging
from unittest.mock import patch

import pytest

from crosskit.build.orchestrator import build_environment
from crosskit.config.parser import CrossKitConfig
from crosskit.core.exceptions import CompilerVersionError, NotFoundError
from crosskit.core.state import CHECKSUM_FILENAME
from crosskit.toolchain.installer import ArtifactInstaller
from crosskit.toolchain.resolver import (
    BuildConfig,
    locate_toolchain,
    resolve_build_config,
)


@pytest.fixture
def installer(tmp_path) -> ArtifactInstaller:
    config = CrossKitConfig(
        sdk_root=tmp_path / "sdk",
        rustlib_root=tmp_path / "rust",
        lock_dir=tmp_path / "lock",
    )
    return ArtifactInstaller(config, platform="linux")


def install_marker(root):
    root.mkdir(parents=True, exist_ok=True)
    (root / CHECKSUM_FILENAME).write_text("ab  archive.tar\n")


class TestLocateToolchain:
    """Test locate_toolchain function."""

    def test_single_match(self, tmp_path):
        """Test the toolchain directory is found among other entries."""
        (tmp_path / "staging").mkdir()
        (tmp_path / "toolchain-mipsel_24kc_gcc-5.4.0_musl").mkdir()

        assert locate_toolchain(tmp_path) == tmp_path / "toolchain-mipsel_24kc_gcc-5.4.0_musl"

    def test_multiple_matches_pick_one(self, tmp_path, caplog):
        """Test an ambiguous SDK still yields a prefixed entry."""
        for name in ("toolchain-mips-2019", "notit", "toolchain-x86"):
            (tmp_path / name).mkdir()

        with caplog.at_level(logging.WARNING):
            result = locate_toolchain(tmp_path)

        assert result.parent == tmp_path
        assert result.name.startswith("toolchain-")
        assert result.name == "toolchain-x86"
        assert "Multiple toolchains" in caplog.text

    def test_no_match(self, tmp_path):
        """Test an SDK without toolchain fails."""
        (tmp_path / "staging").mkdir()

        with pytest.raises(NotFoundError, match="No toolchain found"):
            locate_toolchain(tmp_path)

    def test_missing_root(self, tmp_path):
        """Test a missing SDK root fails the same way."""
        with pytest.raises(NotFoundError, match="No toolchain found"):
            locate_toolchain(tmp_path / "missing")


class TestResolveBuildConfig:
    """Test resolve_build_config function."""

    def test_complete_install(self, installer, tmp_path):
        """Test all paths are resolved."""
        sdk_root = tmp_path / "sdk" / "linux"
        install_marker(sdk_root)
        (sdk_root / "toolchain-mipsel").mkdir()
        install_marker(tmp_path / "rust" / "1.14.0")

        config = resolve_build_config(
            installer, name="blinky", compiler_version="1.14.0"
        )

        assert config == BuildConfig(
            compiler_version="1.14.0",
            toolchain_path=sdk_root / "toolchain-mipsel",
            staging_dir=sdk_root,
            stdlib_path=tmp_path / "rust" / "1.14.0",
            name="blinky",
        )

    def test_staging_dir_is_sdk_root(self, installer, tmp_path):
        """Test STAGING_DIR points at the SDK root, not the toolchain inside it."""
        sdk_root = tmp_path / "sdk" / "linux"
        install_marker(sdk_root)
        (sdk_root / "toolchain-mipsel").mkdir()
        install_marker(tmp_path / "rust" / "1.14.0")

        config = resolve_build_config(
            installer, name="blinky", compiler_version="1.14.0"
        )
        env = build_environment(config, {"PATH": "/usr/bin"})

        assert env["STAGING_DIR"] == str(sdk_root)
        assert env["PATH"].startswith(str(sdk_root / "toolchain-mipsel" / "bin"))

    def test_lock_dir_untouched(self, installer, tmp_path):
        """Test resolving a config does not create the lock directory."""
        install_marker(tmp_path / "sdk" / "linux")
        (tmp_path / "sdk" / "linux" / "toolchain-mipsel").mkdir()
        install_marker(tmp_path / "rust" / "1.14.0")

        resolve_build_config(installer, compiler_version="1.14.0")

        assert not (tmp_path / "lock").exists()

    def test_version_from_compiler(self, installer, tmp_path):
        """Test the compiler is queried when no version is given."""
        install_marker(tmp_path / "sdk" / "linux")
        (tmp_path / "sdk" / "linux" / "toolchain-mipsel").mkdir()
        install_marker(tmp_path / "rust" / "1.15.1")

        with patch(
            "crosskit.toolchain.resolver.rust_version", return_value="1.15.1"
        ):
            config = resolve_build_config(installer)

        assert config.compiler_version == "1.15.1"

    def test_compiler_failure_comes_first(self, installer):
        """Test nothing else is checked when rustc fails."""
        with patch(
            "crosskit.toolchain.resolver.rust_version",
            side_effect=CompilerVersionError("Could not identify"),
        ), patch.object(installer, "check_sdk") as check_sdk:
            with pytest.raises(CompilerVersionError):
                resolve_build_config(installer)

        check_sdk.assert_not_called()

    def test_sdk_missing(self, installer, tmp_path):
        """Test a missing SDK is reported before the libstd."""
        install_marker(tmp_path / "rust" / "1.14.0")

        with pytest.raises(NotFoundError, match="SDK not installed.") as exc_info:
            resolve_build_config(installer, compiler_version="1.14.0")

        assert "install --sdk" in exc_info.value.hint

    def test_sdk_without_marker_counts_as_missing(self, installer, tmp_path):
        """Test a half-present SDK directory is not treated as installed."""
        (tmp_path / "sdk" / "linux" / "toolchain-mipsel").mkdir(parents=True)

        with pytest.raises(NotFoundError, match="SDK not installed."):
            resolve_build_config(installer, compiler_version="1.14.0")

    def test_stdlib_missing(self, installer, tmp_path):
        """Test a missing libstd for the compiler version is reported."""
        install_marker(tmp_path / "sdk" / "linux")
        (tmp_path / "sdk" / "linux" / "toolchain-mipsel").mkdir()
        install_marker(tmp_path / "rust" / "1.13.0")

        with pytest.raises(NotFoundError, match=r"MIPS libstd v1\.14\.0 not installed\."):
            resolve_build_config(installer, compiler_version="1.14.0")

    def test_toolchain_missing(self, installer, tmp_path):
        """Test an SDK without toolchain directory is reported."""
        install_marker(tmp_path / "sdk" / "linux")
        install_marker(tmp_path / "rust" / "1.14.0")

        with pytest.raises(NotFoundError, match="No toolchain found"):
            resolve_build_config(installer, compiler_version="1.14.0")
