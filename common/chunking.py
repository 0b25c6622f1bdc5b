"""Chunk slicing and text-safe encoding shared by the uploader and the server."""

import base64
import binascii
import gzip
import re
import zlib
from pathlib import Path
from typing import Iterator, Optional

from common.constants import PSD_MIME_TYPE
from common.types import Chunk, UploadEncoding


class ChunkEncodingError(ValueError):
    """Raised when a chunk payload cannot be decoded."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


_DATA_URL_PATTERN = re.compile(r'^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*),(?P<data>.*)$', re.DOTALL)


def split_into_chunks(data: bytes, chunk_size: int) -> list[Chunk]:
    """
    Split a byte string into consecutive chunks.

    Args:
        data: Source bytes
        chunk_size: Maximum chunk size in bytes

    Returns:
        Chunks ordered by index
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [
        Chunk(index=i, payload=data[offset:offset + chunk_size])
        for i, offset in enumerate(range(0, len(data), chunk_size))
    ]


def iter_file_chunks(file_path: str | Path, chunk_size: int) -> Iterator[Chunk]:
    """
    Stream a file from disk as chunks without loading it whole.

    Args:
        file_path: Path of the file to read
        chunk_size: Maximum chunk size in bytes

    Yields:
        Chunks ordered by index
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    with open(file_path, 'rb') as f:
        index = 0
        while True:
            payload = f.read(chunk_size)
            if not payload:
                break
            yield Chunk(index=index, payload=payload)
            index += 1


def encode_chunk(payload: bytes, encoding: UploadEncoding = UploadEncoding.NONE) -> str:
    """Encode raw chunk bytes as base64 text, gzip-compressing first if requested."""
    if encoding == UploadEncoding.GZIP:
        payload = gzip.compress(payload)
    return base64.b64encode(payload).decode('ascii')


def _gunzip(data: bytes, max_size: Optional[int]) -> bytes:
    if not data:
        return data
    decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
    try:
        if max_size is None:
            out = decompressor.decompress(data)
        else:
            out = decompressor.decompress(data, max_size + 1)
    except zlib.error as e:
        raise ChunkEncodingError("GZIP_DECOMPRESSION_FAILED", f"Chunk could not be decompressed: {e}")
    if max_size is not None and len(out) > max_size:
        return out
    if not decompressor.eof:
        raise ChunkEncodingError("GZIP_DECOMPRESSION_FAILED", "Chunk could not be decompressed: truncated gzip stream")
    return out


def decode_chunk(
    text: str,
    encoding: UploadEncoding = UploadEncoding.NONE,
    max_size: Optional[int] = None,
) -> bytes:
    """
    Decode a base64 chunk back into raw bytes.

    Args:
        text: Base64 payload
        encoding: Whether the payload is gzip-compressed
        max_size: Cap on the decompressed size. Inflation stops after
            max_size + 1 bytes, so a longer result means the cap was hit.

    Raises:
        ChunkEncodingError: On invalid base64 or a corrupt gzip stream
    """
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ChunkEncodingError("INVALID_BASE64", f"Chunk is not valid base64: {e}")

    if encoding == UploadEncoding.GZIP:
        data = _gunzip(data, max_size)
    return data


def to_data_url(data: bytes, mime_type: str = PSD_MIME_TYPE) -> str:
    """Encode bytes as a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(url: str) -> tuple[str, bytes]:
    """
    Decode a base64 data URL.

    Returns:
        Tuple of (mime_type, payload_bytes)

    Raises:
        ChunkEncodingError: If the URL is not a base64 data URL
    """
    match = _DATA_URL_PATTERN.match(url.strip())
    if not match or ';base64' not in match.group('params'):
        raise ChunkEncodingError("INVALID_DATA_URL", "Expected a base64 data URL")
    mime_type = match.group('mime') or 'application/octet-stream'
    return mime_type, decode_chunk(match.group('data'))


def estimate_data_url_size(url: str) -> int:
    """Decoded size of a base64 data URL, computed without decoding it."""
    _, _, encoded = url.strip().partition(',')
    padding = len(encoded) - len(encoded.rstrip('='))
    return (len(encoded) * 3) // 4 - padding
