"""Test fixtures for crosskit tests.

This package provides reusable helpers and pytest fixtures for testing
crosskit components:

- archives: In-memory tarballs shaped like the published SDK and libstd

Import them in your tests using:
    from tests.fixtures.archives import make_tar, sha256_line
"""

__all__ = [
    "archives",
]
