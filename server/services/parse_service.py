"""Parse service for small documents sent inline."""

import asyncio

from common.chunking import ChunkEncodingError, estimate_data_url_size, parse_data_url
from common.logging_config import get_logger
from server.config import MAX_DIRECT_BYTES
from server.exceptions import InvalidDataUrlError, UploadTooLargeError
from server.psd_reader import check_signature, parse_psd_bytes
from server.schemas.parse import ParsePsdRequest, ParsePsdResponse

logger = get_logger(__name__)

DEFAULT_FILE_NAME = "document.psd"


class ParseService:
    def __init__(self, max_direct_bytes: int = MAX_DIRECT_BYTES):
        self.max_direct_bytes = max_direct_bytes

    async def parse(self, request: ParsePsdRequest) -> ParsePsdResponse:
        """
        Parse a document carried as a base64 data URL.

        Raises:
            InvalidDataUrlError: If the source is not a base64 data URL
            UploadTooLargeError: If the data is above the direct limit
            InvalidPsdSignatureError, PsdParseError
        """
        source = request.source
        if not source.startswith("data:"):
            raise InvalidDataUrlError("Only base64 data: URLs are accepted; use the chunk endpoints for files")

        estimated = estimate_data_url_size(source)
        if estimated > self.max_direct_bytes:
            raise UploadTooLargeError(
                f"Document of {estimated} bytes exceeds the {self.max_direct_bytes} byte direct limit; "
                f"use /api/psd-chunks",
                code="FILE_TOO_LARGE_DIRECT",
            )

        try:
            _, data = parse_data_url(source)
        except ChunkEncodingError as e:
            raise InvalidDataUrlError(str(e)) from e

        check_signature(data)
        file_name = request.file_name or DEFAULT_FILE_NAME
        logger.info(f"Parsing inline document {file_name} ({len(data)} bytes)")
        summary = await asyncio.to_thread(
            parse_psd_bytes, data, file_name, request.include_image_data
        )
        return ParsePsdResponse(data=summary)
