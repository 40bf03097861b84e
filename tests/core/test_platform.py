"""
Unit tests for host platform mapping.
"""

import pytest
from unittest.mock import patch

from crosskit.core.exceptions import UnsupportedPlatformError
from crosskit.core.platform import get_platform


class TestGetPlatform:
    """Tests for get_platform function."""

    @pytest.mark.parametrize(
        "system, expected", [("darwin", "macos"), ("linux", "linux")]
    )
    def test_supported(self, system, expected):
        """Test supported hosts map to SDK identifiers."""
        assert get_platform(system) == expected

    @pytest.mark.parametrize("system", ["win32", "cygwin", "freebsd13"])
    def test_unsupported(self, system):
        """Test other hosts are rejected."""
        with pytest.raises(UnsupportedPlatformError, match="not yet supported"):
            get_platform(system)

    def test_defaults_to_sys_platform(self):
        """Test the running interpreter's platform is used by default."""
        with patch("crosskit.core.platform.sys.platform", "darwin"):
            assert get_platform() == "macos"
