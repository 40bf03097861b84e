"""
Artifact download, verification and installation.

This module orchestrates installing the SDK and the MIPS standard library
bundle. Each install is one transaction over a single streamed download:

1. Fetch the published digest line and compare it with the CHECKSUM marker
2. Stream the archive through a hashing stage, decompression and tar
   extraction into a private temporary directory
3. Compare the computed digest line with the published one
4. Write the CHECKSUM marker into the temporary tree
5. Replace the install root with the temporary tree

The install root is only touched in step 5, so a failed download, a corrupt
archive or a digest mismatch leave the previous installation as it was.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

import requests
from requests.exceptions import RequestException

from crosskit.config.parser import CrossKitConfig
from crosskit.core.download import (
    DownloadProgress,
    HashingPassthrough,
    digest_line,
    fetch_digest,
    open_download,
)
from crosskit.core.exceptions import (
    ChecksumError,
    DownloadError,
    ExtractError,
    FetchError,
    MoveError,
)
from crosskit.core.filesystem import (
    FilesystemError,
    atomic_write,
    extract_tar_stream,
    replace_directory,
    temporary_directory,
)
from crosskit.core.locking import LockManager, LockTimeout
from crosskit.core.platform import get_platform
from crosskit.core.state import CHECKSUM_FILENAME, ArtifactState, check_artifact
from crosskit.core.streams import BLOCK_SIZE, IterStream, get_decompressor, rechunk
from crosskit.toolchain.artifacts import Artifact, sdk_artifact, stdlib_artifact
from crosskit.toolchain.compiler import (
    check_stdlib_supported,
    rust_version,
    unsupported_stdlib_error,
)

logger = logging.getLogger(__name__)


@dataclass
class DownloadSession:
    """State of one in-flight install transaction."""

    url: str
    """Archive URL being streamed"""

    expected_digest: Optional[str] = None
    """Published digest line the archive must match (None until fetched)"""

    temp_dir: Optional[Path] = None
    """Private extraction directory (set once created)"""

    hasher: Optional[HashingPassthrough] = None
    """Hashing stage of the pipeline (set once the stream starts)"""

    entries: int = 0
    """Archive members extracted so far"""

    @property
    def bytes_downloaded(self) -> int:
        """Compressed bytes observed by the hashing stage."""
        return self.hasher.bytes_seen if self.hasher else 0


@dataclass
class InstallResult:
    """Result of an install operation."""

    artifact: Artifact
    """Artifact that was requested"""

    install_root: Path
    """Directory holding the installed contents"""

    digest_line: str
    """Digest line stored in the CHECKSUM marker"""

    was_installed: bool
    """True if an install was performed, False if already up to date"""

    was_update: bool
    """True if a previous, different installation was replaced"""

    install_time: float
    """Time spent downloading and extracting in seconds"""


class InstallTransaction:
    """
    Install one artifact from a stream of compressed bytes.

    The transaction owns a temporary directory for its whole lifetime and
    removes it on every exit path. Failures are raised as typed
    ``InstallError`` subclasses:

    - ``DownloadError`` if the byte stream fails
    - ``ExtractError`` if decompression or tar parsing fails
    - ``ChecksumError`` if the computed digest differs from the published one
    - ``MoveError`` if writing the marker or replacing the install root fails

    Example:
        >>> transaction = InstallTransaction(artifact, expected)
        >>> transaction.run(open_download(artifact.url))
    """

    def __init__(
        self,
        artifact: Artifact,
        expected_digest_line: str,
        lock_manager: Optional[LockManager] = None,
        lock_timeout: float = 300,
        block_size: int = BLOCK_SIZE,
    ):
        self.artifact = artifact
        self.expected_digest_line = expected_digest_line
        self.lock_manager = lock_manager or LockManager()
        self.lock_timeout = lock_timeout
        self.block_size = block_size

    def run(self, chunks: Iterable[bytes]) -> DownloadSession:
        """
        Stream, verify and install the artifact.

        Args:
            chunks: Compressed archive bytes, in order

        Returns:
            The finished session

        Raises:
            InstallError: On any failure (see class docstring)
        """
        artifact = self.artifact
        session = DownloadSession(
            url=artifact.url, expected_digest=self.expected_digest_line
        )

        with temporary_directory(prefix=f"crosskit-{artifact.artifact_id}-") as temp_dir:
            session.temp_dir = temp_dir

            actual = self._stream_into(chunks, temp_dir, session)
            if actual != self.expected_digest_line:
                logger.debug(
                    f"Expected {self.expected_digest_line!r}, computed {actual!r}"
                )
                raise ChecksumError(
                    f"Checksum for downloaded {artifact.display_name} does not match!"
                )

            try:
                atomic_write(temp_dir / CHECKSUM_FILENAME, actual)
            except OSError as e:
                raise MoveError(
                    f"Failed to write {CHECKSUM_FILENAME} for {artifact.display_name}: {e}"
                ) from e
            self._replace(temp_dir)

        logger.debug(
            f"Installed {artifact.artifact_id}: {session.bytes_downloaded} bytes, "
            f"{session.entries} entries"
        )
        return session

    def _stream_into(
        self, chunks: Iterable[bytes], temp_dir: Path, session: DownloadSession
    ) -> str:
        """Run the pipeline into temp_dir and return the computed digest line."""
        artifact = self.artifact
        session.hasher = HashingPassthrough(chunks)
        decompress = get_decompressor(artifact.codec.value)
        stream = IterStream(rechunk(decompress(session.hasher), self.block_size))

        def on_entry(count: int, name: str):
            session.entries = count

        try:
            extract_tar_stream(
                stream,
                temp_dir,
                strip=artifact.strip_components,
                progress_callback=on_entry,
            )
            # The digest covers the whole payload, including tar padding
            # past the end-of-archive marker
            stream.drain()
        except (DownloadError, RequestException) as e:
            raise DownloadError(
                f"Failed to download {artifact.display_name}: {e}"
            ) from e
        except ExtractError as e:
            raise type(e)(f"Failed to extract {artifact.display_name}: {e}") from e

        return digest_line(session.hasher.hexdigest, artifact.archive_name)

    def _replace(self, temp_dir: Path) -> None:
        """Swap the prepared tree into the install root under the artifact lock."""
        artifact = self.artifact
        try:
            with self.lock_manager.artifact_lock(
                artifact.artifact_id, timeout=self.lock_timeout
            ):
                replace_directory(temp_dir, artifact.install_root)
        except LockTimeout as e:
            raise MoveError(
                f"Timed out waiting to install {artifact.display_name}: {e}"
            ) from e
        except (OSError, FilesystemError) as e:
            raise MoveError(
                f"Failed to move {artifact.display_name} into {artifact.install_root}: {e}"
            ) from e


class ArtifactInstaller:
    """
    Installs the SDK and standard library bundles described by a config.

    Example:
        >>> installer = ArtifactInstaller()
        >>> installer.install_sdk()
        >>> installer.install_stdlib("1.14.0")
    """

    def __init__(
        self,
        config: Optional[CrossKitConfig] = None,
        platform: Optional[str] = None,
        session: Optional[requests.Session] = None,
        lock_manager: Optional[LockManager] = None,
    ):
        """
        Initialize installer.

        Args:
            config: Configuration. If None, uses defaults.
            platform: SDK platform identifier. If None, detected from the host.
            session: Optional requests session shared by all requests
            lock_manager: Optional lock manager. If None, one is created in
                the configured lock directory on the first install.
        """
        self.config = config or CrossKitConfig()
        self._platform = platform
        self.session = session
        self._lock_manager = lock_manager

    @property
    def platform(self) -> str:
        """SDK platform, detected on first use."""
        if self._platform is None:
            self._platform = get_platform()
        return self._platform

    @property
    def lock_manager(self) -> LockManager:
        """Lock manager, created on first use."""
        if self._lock_manager is None:
            self._lock_manager = LockManager(self.config.lock_dir)
        return self._lock_manager

    def sdk(self) -> Artifact:
        """Artifact description of the SDK for this platform."""
        return sdk_artifact(
            self.platform,
            self.config.sdk_root,
            self.config.sdk_urls[self.platform],
        )

    def stdlib(self, version: str) -> Artifact:
        """Artifact description of the standard library bundle for a version."""
        return stdlib_artifact(
            version, self.config.rustlib_root, self.config.rustlib_url
        )

    def check_sdk(self, expected_digest_line: Optional[str] = None) -> ArtifactState:
        """Check the SDK install state against an optional digest line."""
        return check_artifact(self.sdk().install_root, expected_digest_line)

    def check_stdlib(
        self, version: str, expected_digest_line: Optional[str] = None
    ) -> ArtifactState:
        """Check a standard library bundle against an optional digest line."""
        return check_artifact(self.stdlib(version).install_root, expected_digest_line)

    def install_sdk(
        self,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
        force: bool = False,
    ) -> InstallResult:
        """
        Install or update the SDK.

        Args:
            progress_callback: Optional download progress callback
            force: Reinstall even if the marker matches

        Returns:
            InstallResult

        Raises:
            FetchError: If the published digest cannot be retrieved
            InstallError: If the install transaction fails
        """
        artifact = self.sdk()
        expected = fetch_digest(
            artifact.url, session=self.session, timeout=self.config.timeout
        )
        return self._install(artifact, expected, progress_callback, force)

    def install_stdlib(
        self,
        version: Optional[str] = None,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
        force: bool = False,
    ) -> InstallResult:
        """
        Install or update the standard library bundle for a compiler version.

        Args:
            version: Compiler version. If None, taken from ``rustc -V``.
            progress_callback: Optional download progress callback
            force: Reinstall even if the marker matches

        Returns:
            InstallResult

        Raises:
            CompilerVersionError: If no version was given and rustc is unusable
            NotFoundError: If no bundle is published for the version
            InstallError: If the install transaction fails
        """
        if version is None:
            version = rust_version()
        check_stdlib_supported(version)

        artifact = self.stdlib(version)
        try:
            expected = fetch_digest(
                artifact.url, session=self.session, timeout=self.config.timeout
            )
        except FetchError as e:
            raise unsupported_stdlib_error(version) from e

        return self._install(artifact, expected, progress_callback, force)

    def _install(
        self,
        artifact: Artifact,
        expected: str,
        progress_callback: Optional[Callable[[DownloadProgress], None]],
        force: bool,
    ) -> InstallResult:
        state = check_artifact(artifact.install_root, expected)

        if state.up_to_date and not force:
            logger.info(f"Latest {artifact.display_name} already installed.")
            return InstallResult(
                artifact=artifact,
                install_root=artifact.install_root,
                digest_line=expected,
                was_installed=False,
                was_update=False,
                install_time=0.0,
            )

        if not state.exists:
            logger.info(f"Installing {artifact.display_name}...")
        else:
            logger.info(f"Updating {artifact.display_name}...")

        start_time = time.time()
        chunks = open_download(
            artifact.url,
            session=self.session,
            timeout=self.config.timeout,
            progress_callback=progress_callback,
        )
        InstallTransaction(artifact, expected, self.lock_manager).run(chunks)
        install_time = time.time() - start_time

        logger.info(f"{artifact.display_name} installed to {artifact.install_root}")
        return InstallResult(
            artifact=artifact,
            install_root=artifact.install_root,
            digest_line=expected,
            was_installed=True,
            was_update=state.exists,
            install_time=install_time,
        )
