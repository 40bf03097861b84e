"""
Pytest configuration and shared fixtures for crosskit tests.
"""

from pathlib import Path

import pytest

# Import test fixtures to make them available to all tests
# ruff: noqa: F401
from tests.fixtures.archives import (
    sdk_archive,
    stdlib_archive,
)


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Point the crosskit base directory at a temporary location."""
    home = tmp_path / "tessel"
    home.mkdir()
    monkeypatch.setenv("CROSSKIT_HOME", str(home))
    return home

