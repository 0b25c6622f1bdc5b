"""Tests for chunk slicing and encoding helpers."""

import base64
import gzip
import os

import pytest

from common.chunking import (
    ChunkEncodingError,
    decode_chunk,
    encode_chunk,
    estimate_data_url_size,
    iter_file_chunks,
    parse_data_url,
    split_into_chunks,
    to_data_url,
)
from common.constants import PSD_MIME_TYPE
from common.types import UploadEncoding


def test_split_covers_payload_in_order():
    """Chunks are contiguous, indexed from zero, and only the last is short."""
    data = os.urandom(1000)
    chunks = split_into_chunks(data, 300)

    assert [c.index for c in chunks] == [0, 1, 2, 3]
    assert [c.size for c in chunks] == [300, 300, 300, 100]
    assert b"".join(c.payload for c in chunks) == data


def test_split_512_kib_at_128_kib_gives_four_chunks():
    data = os.urandom(512 * 1024)
    chunks = split_into_chunks(data, 128 * 1024)

    assert len(chunks) == 4
    assert sum(c.size for c in chunks) == 524288


def test_split_empty_payload():
    assert split_into_chunks(b"", 1024) == []


@pytest.mark.parametrize("size", [0, -1])
def test_split_rejects_non_positive_chunk_size(size):
    with pytest.raises(ValueError):
        split_into_chunks(b"abc", size)


def test_iter_file_chunks_matches_split(tmp_path):
    data = os.urandom(10_000)
    path = tmp_path / 'blob.psd'
    path.write_bytes(data)

    streamed = list(iter_file_chunks(path, 4096))

    assert streamed == split_into_chunks(data, 4096)


def test_encode_decode_plain():
    payload = b"8BPS" + bytes(range(256))
    text = encode_chunk(payload)

    assert text == base64.b64encode(payload).decode('ascii')
    assert decode_chunk(text) == payload


def test_encode_gzip_compresses_before_base64():
    payload = b"\x00" * 10_000
    text = encode_chunk(payload, UploadEncoding.GZIP)

    assert len(text) < len(base64.b64encode(payload))
    assert gzip.decompress(base64.b64decode(text)) == payload
    assert decode_chunk(text, UploadEncoding.GZIP) == payload


def test_decode_rejects_invalid_base64():
    with pytest.raises(ChunkEncodingError) as exc_info:
        decode_chunk("not base64!!")

    assert exc_info.value.code == "INVALID_BASE64"


def test_decode_rejects_corrupt_gzip():
    text = base64.b64encode(b"definitely not gzip").decode('ascii')

    with pytest.raises(ChunkEncodingError) as exc_info:
        decode_chunk(text, UploadEncoding.GZIP)

    assert exc_info.value.code == "GZIP_DECOMPRESSION_FAILED"


def test_data_url_round_trip():
    payload = b"8BPS\x00\x01"
    url = to_data_url(payload)

    assert url.startswith(f"data:{PSD_MIME_TYPE};base64,")
    assert parse_data_url(url) == (PSD_MIME_TYPE, payload)


def test_parse_data_url_requires_base64_marker():
    with pytest.raises(ChunkEncodingError) as exc_info:
        parse_data_url("data:text/plain,hello")

    assert exc_info.value.code == "INVALID_DATA_URL"


def test_parse_data_url_rejects_plain_path():
    with pytest.raises(ChunkEncodingError):
        parse_data_url("/tmp/design.psd")


@pytest.mark.parametrize("size", [0, 1, 2, 3, 999, 1000, 1001])
def test_estimate_data_url_size_is_exact(size):
    """Padding characters do not count towards the decoded size."""
    assert estimate_data_url_size(to_data_url(os.urandom(size))) == size


def test_gzip_decode_stops_past_max_size():
    text = encode_chunk(b"\x00" * (4 * 1024 * 1024), UploadEncoding.GZIP)

    assert len(decode_chunk(text, UploadEncoding.GZIP, max_size=100)) == 101


def test_gzip_decode_within_max_size_is_complete():
    payload = b"8BPS" * 25
    text = encode_chunk(payload, UploadEncoding.GZIP)

    assert decode_chunk(text, UploadEncoding.GZIP, max_size=len(payload)) == payload


def test_decode_rejects_truncated_gzip():
    compressed = gzip.compress(os.urandom(2048))
    text = base64.b64encode(compressed[:len(compressed) // 2]).decode('ascii')

    with pytest.raises(ChunkEncodingError) as exc_info:
        decode_chunk(text, UploadEncoding.GZIP)

    assert exc_info.value.code == "GZIP_DECOMPRESSION_FAILED"
