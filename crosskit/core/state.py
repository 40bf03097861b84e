"""
Install state of artifacts.

An artifact counts as installed only when its install root contains a
``CHECKSUM`` marker file. The marker holds the digest line that was verified
when the artifact was installed, so comparing it against the currently
published digest tells whether the install is up to date.

State is derived from disk on every call and never cached.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CHECKSUM_FILENAME = "CHECKSUM"


@dataclass(frozen=True)
class ArtifactState:
    """
    Snapshot of one install root.

    Attributes:
        exists: A readable CHECKSUM marker is present
        checked: The marker equals the expected digest line
        path: Install root that was inspected
    """

    exists: bool
    checked: bool
    path: Path

    @property
    def up_to_date(self) -> bool:
        """Installed and matching the expected digest."""
        return self.exists and self.checked


def read_marker(install_root: Path) -> Optional[str]:
    """
    Read the CHECKSUM marker of an install root.

    Returns:
        Marker content, or None if it cannot be read
    """
    marker = Path(install_root) / CHECKSUM_FILENAME
    try:
        # newline="" keeps the line ending exactly as written
        with open(marker, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"No readable marker at {marker}: {e}")
        return None


def check_artifact(
    install_root: Path, expected_digest_line: Optional[str] = None
) -> ArtifactState:
    """
    Check whether an artifact is installed and matches a digest.

    Missing roots, missing markers and permission errors all yield a
    "not installed" state; this function does not raise for them.

    Args:
        install_root: Directory that holds the artifact
        expected_digest_line: Published digest line; when None, ``checked``
            is always False

    Returns:
        ArtifactState for the root

    Example:
        >>> state = check_artifact(Path("~/.tessel/sdk/linux").expanduser())
        >>> state.exists
        False
    """
    install_root = Path(install_root)
    content = read_marker(install_root)

    if content is None:
        return ArtifactState(exists=False, checked=False, path=install_root)

    checked = expected_digest_line is not None and content == expected_digest_line
    return ArtifactState(exists=True, checked=checked, path=install_root)
