"""
Concurrent access control for crosskit.

Two crosskit processes installing the same artifact would otherwise race
while swapping the install root. This module provides file-based locks
(via the ``filelock`` library) that serialize those swaps across processes.

Usage:
    from crosskit.core.locking import LockManager

    lock_manager = LockManager()
    with lock_manager.artifact_lock("sdk-linux", timeout=300):
        # Safely replace the install root
        pass
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout as LockTimeout

from crosskit.core.directory import get_lock_dir

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages locks for crosskit install roots.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic cleanup on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Optional[Path] = None):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files (default: <base>/lock/)
        """
        if lock_dir is None:
            lock_dir = get_lock_dir()

        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    def lock_path(self, artifact_id: str) -> Path:
        """Lock file used for an artifact."""
        safe_id = artifact_id.replace("/", "-").replace("\\", "-").replace(":", "-")
        return self.lock_dir / f"artifact-{safe_id}.lock"

    @contextmanager
    def artifact_lock(self, artifact_id: str, timeout: float = 300):
        """
        Acquire the lock guarding one artifact's install root.

        Args:
            artifact_id: Unique artifact identifier (e.g., 'sdk-linux', 'stdlib-1.14.0')
            timeout: Maximum wait time in seconds

        Yields:
            None

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.lock_path(artifact_id)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired artifact lock: {lock_path}")
                yield
                logger.debug(f"Released artifact lock: {lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire lock for {artifact_id} after {timeout}s. "
                "Another process may be installing this artifact."
            )
            raise LockTimeout(str(lock_path)) from e


__all__ = [
    "LockManager",
    "LockTimeout",
]
