"""
Unit tests for the streaming pipeline stages.
"""

import bz2
import gzip
import io
import os

import pytest

from crosskit.core.exceptions import ExtractError
from crosskit.core.streams import (
    BLOCK_SIZE,
    DecompressionError,
    IterStream,
    get_decompressor,
    iter_bzip2,
    iter_gzip,
    rechunk,
)
from tests.fixtures.archives import chunked


class TestRechunk:
    """Test rechunk stage."""

    def test_fixed_blocks_with_short_tail(self):
        """Test every block is full except the last."""
        blocks = list(rechunk([b"abc", b"defg", b"h"], size=3))
        assert blocks == [b"abc", b"def", b"gh"]

    def test_exact_multiple_has_no_empty_tail(self):
        """Test no trailing empty block is emitted."""
        blocks = list(rechunk([b"ab", b"cd"], size=2))
        assert blocks == [b"ab", b"cd"]

    def test_no_padding(self):
        """Test the total length is preserved."""
        payload = os.urandom(BLOCK_SIZE * 2 + 123)
        blocks = list(rechunk(chunked(payload, 7000)))

        assert b"".join(blocks) == payload
        assert [len(b) for b in blocks] == [BLOCK_SIZE, BLOCK_SIZE, 123]

    def test_empty_input(self):
        """Test empty input yields nothing."""
        assert list(rechunk([])) == []

    def test_invalid_size(self):
        """Test non-positive sizes are rejected."""
        with pytest.raises(ValueError, match="Block size must be positive"):
            rechunk([b"x"], size=0)


class TestIterBzip2:
    """Test bzip2 decompression stage."""

    def test_single_stream(self):
        """Test ordinary bzip2 data."""
        payload = b"hello bzip2 " * 1000
        compressed = bz2.compress(payload)

        assert b"".join(iter_bzip2(chunked(compressed, 100))) == payload

    def test_multi_stream(self):
        """Test concatenated streams decompress to the concatenated payloads."""
        compressed = bz2.compress(b"first ") + bz2.compress(b"second")

        assert b"".join(iter_bzip2(chunked(compressed, 17))) == b"first second"

    def test_stream_boundary_inside_chunk(self):
        """Test a new stream starting mid-chunk is picked up."""
        compressed = bz2.compress(b"a" * 10) + bz2.compress(b"b" * 10)

        assert b"".join(iter_bzip2([compressed])) == b"a" * 10 + b"b" * 10

    def test_invalid_data(self):
        """Test garbage input raises DecompressionError."""
        with pytest.raises(DecompressionError, match="Invalid bzip2 data"):
            list(iter_bzip2([b"this is not bzip2 data at all"]))

    def test_truncated_stream(self):
        """Test a stream cut short raises DecompressionError."""
        compressed = bz2.compress(os.urandom(4096))

        with pytest.raises(DecompressionError, match="ended before"):
            list(iter_bzip2([compressed[:-20]]))

    def test_decompression_error_is_extract_error(self):
        """Test decompression failures belong to the extract failure family."""
        assert issubclass(DecompressionError, ExtractError)


class TestIterGzip:
    """Test gzip decompression stage."""

    def test_single_member(self):
        """Test ordinary gzip data."""
        payload = b"hello gzip " * 1000
        compressed = gzip.compress(payload)

        assert b"".join(iter_gzip(chunked(compressed, 64))) == payload

    def test_trailing_data_ignored(self):
        """Test bytes after the gzip member are not decompressed."""
        compressed = gzip.compress(b"payload") + b"\x00" * 512

        assert b"".join(iter_gzip([compressed])) == b"payload"

    def test_invalid_data(self):
        """Test garbage input raises DecompressionError."""
        with pytest.raises(DecompressionError, match="Invalid gzip data"):
            list(iter_gzip([b"definitely not gzip"]))

    def test_truncated_stream(self):
        """Test a member cut short raises DecompressionError."""
        compressed = gzip.compress(os.urandom(4096))

        with pytest.raises(DecompressionError, match="ended before"):
            list(iter_gzip([compressed[: len(compressed) // 2]]))


class TestGetDecompressor:
    """Test codec lookup."""

    def test_known_codecs(self):
        """Test codec names map to their stages."""
        assert get_decompressor("bzip2") is iter_bzip2
        assert get_decompressor("gzip") is iter_gzip

    def test_unknown_codec(self):
        """Test unknown codecs raise ValueError."""
        with pytest.raises(ValueError, match="Unsupported codec"):
            get_decompressor("xz")


class TestIterStream:
    """Test IterStream file adapter."""

    def test_read_all(self):
        """Test reading everything returns the joined chunks."""
        stream = IterStream([b"abc", b"", b"defgh"])
        assert stream.read() == b"abcdefgh"

    def test_partial_reads(self):
        """Test reads smaller than a chunk keep the remainder."""
        stream = IterStream([b"abcdef"])

        assert stream.read(2) == b"ab"
        assert stream.read(3) == b"cde"
        assert stream.read(10) == b"f"
        assert stream.read(10) == b""

    def test_buffered_wrapper(self):
        """Test the adapter works under io.BufferedReader."""
        stream = io.BufferedReader(IterStream(chunked(b"z" * 10000, 333)))
        assert stream.read() == b"z" * 10000

    def test_drain_consumes_upstream(self):
        """Test drain pulls every remaining chunk."""
        consumed = []

        def source():
            for chunk in (b"aaaa", b"bb", b"c"):
                consumed.append(chunk)
                yield chunk

        stream = IterStream(source())
        stream.read(2)

        assert stream.drain() == 5
        assert consumed == [b"aaaa", b"bb", b"c"]
        assert stream.read() == b""
