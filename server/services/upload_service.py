"""Upload service for the chunked session protocol."""

import asyncio
import time

from common.logging_config import get_logger
from common.types import UploadEncoding
from server.config import PARTIAL_BYTES
from server.exceptions import PsdParseError
from server.psd_reader import HEADER_SIZE, check_signature, parse_psd_bytes, read_header
from server.schemas.chunks import (
    ChunkAbortResponse,
    ChunkAppendResponse,
    ChunkCompleteResponse,
    ChunkInitResponse,
    PartialInspectResponse,
    UploadMetrics,
    UploadStatusResponse,
)
from server.upload_sessions import UploadSessionStore

logger = get_logger(__name__)


class UploadService:
    def __init__(self, store: UploadSessionStore, partial_bytes: int = PARTIAL_BYTES):
        self.store = store
        self.partial_bytes = partial_bytes

    async def init(self, file_name: str, expected_size: int | None, encoding: UploadEncoding) -> ChunkInitResponse:
        session = self.store.create(file_name, encoding=encoding, expected_size=expected_size)
        return ChunkInitResponse(
            upload_id=session.upload_id,
            encoding=session.encoding,
            expected_size=session.expected_size,
        )

    async def append(self, upload_id: str, chunk_base64: str, index: int | None) -> ChunkAppendResponse:
        session, received = await self.store.append(upload_id, chunk_base64, index)
        logger.debug(
            f"Chunk {session.chunk_count - 1} appended: {received} bytes total={session.size} "
            f"[upload_id={upload_id}]"
        )
        return ChunkAppendResponse(
            received=received,
            total_size=session.size,
            progress=session.progress,
            chunk_index=session.chunk_count - 1,
        )

    async def complete(self, upload_id: str) -> ChunkCompleteResponse:
        """
        Reassemble, verify and parse an upload.

        The session is gone once reassembly succeeds, so signature and
        parse failures require a fresh upload.
        """
        session, data = await self.store.complete(upload_id)
        check_signature(data)

        parse_started = time.monotonic()
        summary = await asyncio.to_thread(parse_psd_bytes, data, session.file_name)
        finished = time.monotonic()
        session_ms = int((self.store.now() - session.created_at) * 1000)

        chunk_count = len(session.chunk_indices)
        metrics = UploadMetrics(
            total_size=len(data),
            chunk_count=chunk_count,
            avg_chunk=round(len(data) / chunk_count) if chunk_count else len(data),
            parse_ms=int((finished - parse_started) * 1000),
            total_session_ms=session_ms,
        )
        logger.info(
            f"Upload parsed: {session.file_name} size={metrics.total_size} chunks={chunk_count} "
            f"parse_ms={metrics.parse_ms} [upload_id={upload_id}]"
        )
        return ChunkCompleteResponse(data=summary, metrics=metrics)

    async def abort(self, upload_id: str) -> ChunkAbortResponse:
        await self.store.abort(upload_id)
        return ChunkAbortResponse()

    async def status(self, upload_id: str) -> UploadStatusResponse:
        session = self.store.get(upload_id)
        now = self.store.now()
        return UploadStatusResponse(
            upload_id=session.upload_id,
            file_name=session.file_name,
            encoding=session.encoding,
            total_size=session.size,
            chunk_count=session.chunk_count,
            expected_size=session.expected_size,
            progress=session.progress,
            aborted=session.aborted,
            age_seconds=round(now - session.created_at, 3),
            idle_seconds=round(now - session.last_activity, 3),
        )

    async def partial(self, upload_id: str) -> PartialInspectResponse:
        """Decode the document header from the bytes received so far."""
        session = self.store.get(upload_id)
        async with session.lock:
            prefix = session.prefix(self.partial_bytes)
            received = session.size
        if len(prefix) < HEADER_SIZE:
            raise PsdParseError(
                f"Only {len(prefix)} bytes received; the header needs {HEADER_SIZE}",
                code="INSUFFICIENT_DATA",
            )
        header = read_header(prefix)
        return PartialInspectResponse(
            upload_id=upload_id,
            received_bytes=received,
            inspected_bytes=len(prefix),
            header=header,
        )
