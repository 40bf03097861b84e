"""
Network access for the install pipeline.

This module provides:
- Incremental SHA256 computation over a chunk stream (HashingPassthrough)
- Retrieval of published digests from ``<url>.sha256`` (fetch_digest)
- Streaming archive downloads with progress reporting (open_download)

Retries and redirects are left to ``requests``; nothing here retries.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

import requests
from requests.exceptions import RequestException

from crosskit.core.exceptions import DownloadError, FetchError

logger = logging.getLogger(__name__)

DIGEST_SUFFIX = ".sha256"
DOWNLOAD_CHUNK_SIZE = 8192


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


class HashingPassthrough:
    """
    Forward byte chunks unchanged while computing their SHA-256.

    Iterating the passthrough yields every chunk of ``source`` in order. The
    digest covers exactly the bytes observed and becomes available once the
    source is exhausted. If the source raises, the error propagates and no
    digest is produced.

    Example:
        >>> hashed = HashingPassthrough([b"hello ", b"world"])
        >>> b"".join(hashed)
        b'hello world'
        >>> hashed.hexdigest == hashlib.sha256(b"hello world").hexdigest()
        True
    """

    def __init__(
        self,
        source: Iterable[bytes],
        on_digest: Optional[Callable[[str], None]] = None,
    ):
        self._source = source
        self._hasher = hashlib.sha256()
        self._on_digest = on_digest
        self.bytes_seen = 0
        self.hexdigest: Optional[str] = None

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._source:
            if not chunk:
                continue
            self._hasher.update(chunk)
            self.bytes_seen += len(chunk)
            yield chunk

        self.hexdigest = self._hasher.hexdigest()
        logger.debug(f"Stream finished after {self.bytes_seen} bytes: {self.hexdigest}")
        if self._on_digest:
            self._on_digest(self.hexdigest)


def digest_line(hexdigest: str, filename: str) -> str:
    """
    Format a digest the way ``sha256sum`` and the published ``.sha256`` files do.

    The result is compared by strict string equality against the remote
    digest and stored verbatim as the CHECKSUM marker.

    Example:
        >>> digest_line("abc123", "sdk.tar.bz2")
        'abc123  sdk.tar.bz2\\n'
    """
    return f"{hexdigest}  {filename}\n"


def fetch_digest(
    url: str, session: Optional[requests.Session] = None, timeout: int = 30
) -> str:
    """
    Fetch the published digest line for an artifact.

    Args:
        url: Artifact URL; the digest lives at ``<url>.sha256``
        session: Optional requests session
        timeout: Request timeout in seconds

    Returns:
        The response body unchanged, e.g. ``"<hex>  <filename>\\n"``

    Raises:
        FetchError: On non-2xx status or transport error
    """
    digest_url = url + DIGEST_SUFFIX
    http = session or requests
    logger.debug(f"Fetching digest from {digest_url}")

    try:
        # Force CDN caches to serve the latest file
        response = http.get(
            digest_url,
            headers={"Cache-Control": "no-cache", "Pragma": "no-cache"},
            timeout=timeout,
            allow_redirects=True,
        )
        response.raise_for_status()
    except RequestException as e:
        raise FetchError(f"Could not fetch digest from {digest_url}: {e}") from e

    return response.text


def open_download(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: int = 30,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
) -> Iterator[bytes]:
    """
    Stream an archive as an iterator of byte chunks.

    The request is issued immediately so that a missing archive fails before
    any temporary state exists. Errors while reading the body surface as
    ``DownloadError`` from the iterator.

    Args:
        url: URL to download
        session: Optional requests session
        timeout: Request timeout in seconds
        progress_callback: Optional callback for progress updates
        chunk_size: Size of network reads

    Returns:
        Iterator over the raw (compressed) response body

    Raises:
        FetchError: If the request fails or returns a non-2xx status
    """
    http = session or requests
    logger.info(f"Downloading from {url}")

    try:
        response = http.get(url, stream=True, timeout=timeout, allow_redirects=True)
        response.raise_for_status()
    except RequestException as e:
        raise FetchError(f"Could not download {url}: {e}") from e

    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    return _iter_response(response, total_size, progress_callback, chunk_size)


def _iter_response(
    response: requests.Response,
    total_size: int,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    chunk_size: int,
) -> Iterator[bytes]:
    """Yield response chunks, reporting progress at most every 0.5 seconds."""
    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    try:
        for chunk in response.iter_content(chunk_size=chunk_size):
            if not chunk:
                continue
            downloaded += len(chunk)
            yield chunk

            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                elapsed = current_time - start_time
                speed = downloaded / elapsed if elapsed > 0 else 0
                remaining = total_size - downloaded if total_size > 0 else 0
                eta = remaining / speed if speed > 0 else 0

                progress_callback(
                    DownloadProgress(
                        bytes_downloaded=downloaded,
                        total_bytes=total_size if total_size > 0 else downloaded,
                        percentage=(downloaded / total_size * 100)
                        if total_size > 0
                        else 0,
                        speed_bps=speed,
                        eta_seconds=eta,
                    )
                )
                last_progress_time = current_time
    except RequestException as e:
        raise DownloadError(f"Error during download: {e}") from e
    finally:
        response.close()


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Args:
        progress: Download progress information

    Returns:
        Formatted progress string

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        # Unknown total size
        return f"{mb_downloaded:.1f} MB " f"at {speed_mbps:.1f} MB/s"
