"""
Composable byte-stream stages for the install pipeline.

Each stage takes an iterable of ``bytes`` chunks and returns an iterator of
``bytes`` chunks, so stages chain by plain function composition and pull data
lazily from the network:

    chunks -> HashingPassthrough -> iter_bzip2/iter_gzip -> rechunk -> IterStream -> tarfile

Invalid or truncated compressed data raises ``DecompressionError`` from the
iterator.
"""

import bz2
import io
import logging
import zlib
from typing import Callable, Iterable, Iterator

from crosskit.core.exceptions import ExtractError

logger = logging.getLogger(__name__)


class DecompressionError(ExtractError):
    """Compressed data is invalid or ends before its end-of-stream marker."""

    pass


# Upper bound on the chunk size handed to the tar reader, independent of how
# large the network reads or decompressed blocks are.
BLOCK_SIZE = 64 * 1024


def rechunk(chunks: Iterable[bytes], size: int = BLOCK_SIZE) -> Iterator[bytes]:
    """
    Re-block a byte stream into fixed-size chunks.

    Every yielded chunk is exactly ``size`` bytes except the last one, which
    holds the remainder and is never padded.

    Args:
        chunks: Input chunks of arbitrary sizes
        size: Block size in bytes

    Raises:
        ValueError: If size is not positive

    Example:
        >>> list(rechunk([b"abc", b"defg"], size=3))
        [b'abc', b'def', b'g']
    """
    if size <= 0:
        raise ValueError(f"Block size must be positive, got {size}")

    return _rechunk(chunks, size)


def _rechunk(chunks: Iterable[bytes], size: int) -> Iterator[bytes]:
    buffer = bytearray()
    for chunk in chunks:
        buffer += chunk
        while len(buffer) >= size:
            yield bytes(buffer[:size])
            del buffer[:size]

    if buffer:
        yield bytes(buffer)


def iter_bzip2(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """
    Decompress a bzip2 stream, including multi-stream files.

    Parallel compressors (pbzip2, lbzip2) write one bzip2 stream per block
    and concatenate them, so a new decompressor is started whenever one
    reaches its end-of-stream marker and data remains.

    Raises:
        DecompressionError: If the data is not valid bzip2 or is truncated
    """
    decompressor = bz2.BZ2Decompressor()
    pending = False

    for chunk in chunks:
        while chunk:
            pending = True
            try:
                data = decompressor.decompress(chunk)
            except OSError as e:
                raise DecompressionError(f"Invalid bzip2 data: {e}") from e
            if data:
                yield data

            if decompressor.eof:
                chunk = decompressor.unused_data
                decompressor = bz2.BZ2Decompressor()
                pending = False
            else:
                chunk = b""

    if pending:
        raise DecompressionError(
            "Compressed file ended before the end-of-stream marker was reached"
        )


def iter_gzip(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """
    Decompress a single-member gzip stream.

    Raises:
        DecompressionError: If the data is not valid gzip or is truncated
    """
    decompressor = zlib.decompressobj(wbits=zlib.MAX_WBITS | 16)

    for chunk in chunks:
        if decompressor.eof:
            # Trailing bytes after the member are not part of the archive
            continue
        try:
            data = decompressor.decompress(chunk)
        except zlib.error as e:
            raise DecompressionError(f"Invalid gzip data: {e}") from e
        if data:
            yield data

    data = decompressor.flush()
    if data:
        yield data

    if not decompressor.eof:
        raise DecompressionError(
            "Compressed file ended before the end-of-stream marker was reached"
        )

    if decompressor.unused_data:
        logger.debug(
            f"Ignoring {len(decompressor.unused_data)} bytes after gzip member"
        )


DECOMPRESSORS = {
    "bzip2": iter_bzip2,
    "gzip": iter_gzip,
}


def get_decompressor(codec: str) -> Callable[[Iterable[bytes]], Iterator[bytes]]:
    """
    Get the decompression stage for a codec name.

    Raises:
        ValueError: If the codec is not supported
    """
    try:
        return DECOMPRESSORS[codec]
    except KeyError:
        raise ValueError(
            f"Unsupported codec: {codec}. Supported: {', '.join(DECOMPRESSORS)}"
        ) from None


class IterStream(io.RawIOBase):
    """
    Read-only binary file object over an iterator of byte chunks.

    ``tarfile`` in stream mode wants a ``read()``-able object; this adapts the
    last pipeline stage to that interface without buffering more than one
    chunk.
    """

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks = iter(chunks)
        self._leftover = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._leftover:
            try:
                self._leftover = next(self._chunks)
            except StopIteration:
                return 0

        count = min(len(buffer), len(self._leftover))
        buffer[:count] = self._leftover[:count]
        self._leftover = self._leftover[count:]
        return count

    def drain(self) -> int:
        """
        Consume whatever the upstream stages still have to produce.

        Returns:
            Number of bytes discarded
        """
        discarded = len(self._leftover)
        self._leftover = b""
        for chunk in self._chunks:
            discarded += len(chunk)
        return discarded
