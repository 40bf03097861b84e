"""
File system utilities for crosskit.

This module provides the filesystem half of the install pipeline:
- Streaming tar extraction with leading path component stripping
- Safe file operations (atomic writes, guarded deletion)
- Directory replacement that keeps the previous tree until the new one is in place
- Temporary directory management
"""

import logging
import os
import shutil
import sys
import tarfile
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from crosskit.core.exceptions import CrossKitError, ExtractError

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(CrossKitError):
    """Base exception for filesystem operations."""

    pass


class InsecureArchiveError(ExtractError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def strip_components(name: str, count: int) -> str:
    """
    Remove leading path segments from an archive member name.

    Returns an empty string when the name has ``count`` segments or fewer,
    which callers treat as "nothing left to extract".

    Example:
        >>> strip_components("t2-sdk/macos/toolchain-mips/bin/gcc", 2)
        'toolchain-mips/bin/gcc'
        >>> strip_components("t2-sdk/", 2)
        ''
    """
    if count <= 0:
        return name

    parts = [part for part in name.split("/") if part]
    return "/".join(parts[count:])


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Resolution follows symlinks already written to disk, so a member cannot
    escape through a previously extracted link either.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not member_path.is_relative_to(destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


# ============================================================================
# Archive Extraction
# ============================================================================


def extract_tar_stream(
    fileobj: BinaryIO,
    destination: Union[str, Path],
    strip: int = 0,
    progress_callback: Optional[Callable[[int, str], None]] = None,
) -> int:
    """
    Unpack an uncompressed tar stream into a directory.

    Members are read strictly in order (``tarfile`` stream mode), so the
    archive never needs to be seekable or fully buffered.

    Args:
        fileobj: Readable binary stream of tar blocks
        destination: Directory to extract to
        strip: Number of leading path segments to drop from each member
        progress_callback: Optional callback(count, member_name) per entry

    Returns:
        Number of members written

    Raises:
        InsecureArchiveError: If a member would land outside destination
        ExtractError: If the stream is not a valid tar archive
    """
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)
    root = os.path.normpath(os.path.abspath(destination))

    extracted = 0
    directories = []

    try:
        with tarfile.open(fileobj=fileobj, mode="r|") as tar:
            for member in tar:
                name = strip_components(member.name, strip).lstrip("/")

                # Ignore entries that are the destination itself ("./", or a
                # wrapper directory removed entirely by stripping)
                target = os.path.normpath(os.path.join(root, name))
                if target == root:
                    logger.debug(f"Skipping archive root entry: {member.name}")
                    continue

                _validate_archive_path(name, destination)
                member.name = name

                if member.islnk():
                    member.linkname = strip_components(member.linkname, strip)
                    _validate_archive_path(member.linkname, destination)

                member = _filter_member(member, destination)
                _extract_member(tar, member, destination)

                if member.isdir():
                    directories.append(member)

                extracted += 1
                if progress_callback:
                    progress_callback(extracted, member.name)

            # Apply directory attributes last so read-only directories do not
            # block their own contents
            directories.sort(key=lambda m: m.name, reverse=True)
            for member in directories:
                dirpath = os.path.join(root, member.name)
                tar.utime(member, dirpath)
                tar.chmod(member, dirpath)

    except tarfile.TarError as e:
        raise ExtractError(f"Invalid tar stream: {e}") from e
    except OSError as e:
        raise ExtractError(f"Failed to write archive contents: {e}") from e

    logger.debug(f"Extracted {extracted} entries to {destination}")
    return extracted


def _filter_member(member: tarfile.TarInfo, destination: Path) -> tarfile.TarInfo:
    """Apply the stdlib 'tar' extraction filter where available (Python 3.12+)."""
    if sys.version_info < (3, 12):
        return member

    try:
        return tarfile.tar_filter(member, str(destination))
    except tarfile.FilterError as e:
        raise InsecureArchiveError(f"Archive member rejected: {e}") from e


def _extract_member(
    tar: tarfile.TarFile, member: tarfile.TarInfo, destination: Path
) -> None:
    """Write one member, deferring directory attributes."""
    set_attrs = not member.isdir()

    if sys.version_info >= (3, 12):
        # Already filtered by _filter_member
        tar.extract(member, destination, set_attrs=set_attrs, filter="fully_trusted")
    else:
        tar.extract(member, destination, set_attrs=set_attrs)


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    This ensures the file is never in a partially-written state.
    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)

    Example:
        >>> atomic_write('CHECKSUM', 'abc123  sdk.tar.bz2\\n')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory (ensures same filesystem)
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        # newline="" keeps "\n" verbatim on every platform
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding, newline="") as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/tmp/crosskit-sdk-x1y2', require_prefix='/tmp')
        >>> safe_rmtree('/usr/bin', require_prefix='/home')  # ValueError
    """
    path = Path(path).absolute()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).absolute()
        if not path.is_relative_to(require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if path.is_symlink():
        path.unlink()
        return

    if not path.exists():
        return  # Already gone, nothing to do

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, 0o777)
                    func(path)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def replace_directory(source: Union[str, Path], target: Union[str, Path]) -> None:
    """
    Move ``source`` to ``target``, replacing any existing tree there.

    The existing target is renamed aside first and only deleted once the new
    tree is in place. If the move fails, the aside copy is renamed back, so a
    failed replace leaves the previous tree where it was.

    Args:
        source: Fully prepared directory
        target: Destination path

    Raises:
        OSError: If the move fails (after the previous tree is restored)
        FilesystemError: If the previous tree could not be restored
    """
    source = Path(source)
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)

    aside = None
    if target.exists() or target.is_symlink():
        aside = target.with_name(f".{target.name}.old-{os.getpid()}")
        if aside.exists() or aside.is_symlink():
            safe_rmtree(aside, require_prefix=target.parent)
        target.rename(aside)
        logger.debug(f"Moved previous tree aside: {aside}")

    try:
        shutil.move(str(source), str(target))
    except (OSError, shutil.Error):
        # A cross-device move may have copied part of the tree
        if target.exists() or target.is_symlink():
            safe_rmtree(target, require_prefix=target.parent)
        if aside is not None:
            try:
                aside.rename(target)
            except OSError as restore_error:
                raise FilesystemError(
                    f"Could not restore previous tree from {aside}: {restore_error}"
                ) from restore_error
            logger.debug(f"Restored previous tree: {target}")
        raise

    if aside is not None:
        try:
            safe_rmtree(aside, require_prefix=target.parent)
        except FilesystemError as e:
            logger.warning(f"Failed to remove previous tree {aside}: {e}")


# ============================================================================
# Temporary File/Directory Management
# ============================================================================


@contextmanager
def temporary_directory(prefix: str = "crosskit-", cleanup: bool = True):
    """
    Context manager for temporary directory with automatic cleanup.

    Cleanup tolerates the directory having been moved away in the meantime,
    and never masks an exception raised by the body.

    Args:
        prefix: Prefix for temp directory name
        cleanup: If True, remove directory on exit

    Yields:
        Path to temporary directory

    Example:
        >>> with temporary_directory() as tmp:
        ...     (tmp / 'file.txt').write_text('test')
        ...     # Directory is automatically cleaned up
    """
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix))

    try:
        yield temp_dir
    finally:
        if cleanup and temp_dir.exists():
            try:
                safe_rmtree(temp_dir)
                logger.debug(f"Removed temporary directory: {temp_dir}")
            except FilesystemError as e:
                logger.warning(f"Failed to remove temporary directory: {e}")


__all__ = [
    "FilesystemError",
    "InsecureArchiveError",
    "strip_components",
    "extract_tar_stream",
    "atomic_write",
    "safe_rmtree",
    "replace_directory",
    "temporary_directory",
]
