"""Sequential chunked upload over the psd-chunks endpoints."""

import os
import time
from pathlib import Path
from typing import Callable, Iterable, Optional

from common.chunking import encode_chunk, iter_file_chunks, split_into_chunks
from common.constants import DEFAULT_CHUNK_SIZE_BYTES
from common.logging_config import get_logger
from common.types import Chunk, PsdDocument, UploadEncoding, UploadOutcome
from cli.api_client import ConverterApiClient
from cli.results import ErrorKind, Failure, StepResult, Success

logger = get_logger(__name__)

ChunkCallback = Callable[[int, int, Optional[float]], None]


class ChunkedUploader:
    """
    Transfers a file as fixed-size base64 chunks: init, one append per chunk
    in index order, then complete.

    Appends are issued one at a time. The first failed step stops the
    sequence; no further append or complete is sent and the server-side
    session is left for the caller to abort or for the server to expire.
    """

    def __init__(
        self,
        api: ConverterApiClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES,
        encoding: UploadEncoding = UploadEncoding.NONE,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.api = api
        self.chunk_size = chunk_size
        self.encoding = encoding
        self.last_upload_id: Optional[str] = None

    def upload_file(self, file_path: str | Path, on_chunk: Optional[ChunkCallback] = None) -> StepResult:
        """
        Upload a file from disk.

        Args:
            file_path: PSD file to send
            on_chunk: Called after each acknowledged append with
                (chunk_index, total_size, progress)

        Returns:
            Success(UploadOutcome) or the first Failure encountered
        """
        path = Path(file_path)
        try:
            total_size = os.path.getsize(path)
        except OSError as e:
            return Failure(ErrorKind.INPUT, 'FILE_NOT_FOUND', f"Cannot read {path}: {e}")
        if total_size == 0:
            return Failure(ErrorKind.INPUT, 'EMPTY_FILE', f"File is empty: {path}")

        try:
            return self._upload(path.name, total_size, iter_file_chunks(path, self.chunk_size), on_chunk)
        except OSError as e:
            logger.error(f"Failed reading {path} during upload: {e}")
            return Failure(ErrorKind.INPUT, 'FILE_READ_ERROR', f"Cannot read {path}: {e}")

    def upload_bytes(
        self,
        data: bytes,
        file_name: str,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> StepResult:
        """Upload an in-memory payload."""
        if not data:
            return Failure(ErrorKind.INPUT, 'EMPTY_FILE', f"Nothing to upload for {file_name}")
        return self._upload(file_name, len(data), split_into_chunks(data, self.chunk_size), on_chunk)

    def abort(self, upload_id: Optional[str] = None) -> StepResult:
        """Discard a session on the server (defaults to the last one opened)."""
        upload_id = upload_id or self.last_upload_id
        if not upload_id:
            return Failure(ErrorKind.INPUT, 'NO_SESSION', 'No upload session to abort')
        return self.api.abort_upload(upload_id)

    def _upload(
        self,
        file_name: str,
        total_size: int,
        chunks: Iterable[Chunk],
        on_chunk: Optional[ChunkCallback],
    ) -> StepResult:
        started = time.monotonic()
        init = self.api.init_upload(file_name, expected_size=total_size, encoding=self.encoding)
        if isinstance(init, Failure):
            logger.warning(f"Upload init failed for {file_name}: {init.describe()}")
            return init

        upload_id = init.value
        self.last_upload_id = upload_id
        sent = 0
        count = 0

        for chunk in chunks:
            appended = self.api.append_chunk(upload_id, encode_chunk(chunk.payload, self.encoding), chunk.index)
            if isinstance(appended, Failure):
                logger.warning(
                    f"Append failed at chunk {chunk.index}: {appended.describe()} [upload_id={upload_id}]"
                )
                return appended

            sent += chunk.size
            count += 1
            body = appended.value
            reported = body.get('totalSize')
            if reported != sent:
                logger.error(
                    f"Server reported totalSize={reported} after {sent} bytes sent [upload_id={upload_id}]"
                )
                return Failure(
                    ErrorKind.STRUCTURAL,
                    'SIZE_MISMATCH',
                    f"Server acknowledged {reported} bytes but {sent} were sent",
                )

            logger.debug(
                f"Chunk {chunk.index} OK ({chunk.size} bytes) total={reported} "
                f"progress={body.get('progress')} [upload_id={upload_id}]"
            )
            if on_chunk is not None:
                on_chunk(chunk.index, reported, body.get('progress'))

        completed = self.api.complete_upload(upload_id)
        if isinstance(completed, Failure):
            logger.warning(f"Upload complete failed: {completed.describe()} [upload_id={upload_id}]")
            return completed

        body = completed.value
        metrics = dict(body.get('metrics') or {})
        metrics.setdefault('clientMs', int((time.monotonic() - started) * 1000))
        logger.info(
            f"Upload finished: {file_name} chunks={count} bytes={sent} [upload_id={upload_id}]"
        )
        return Success(UploadOutcome(
            upload_id=upload_id,
            chunk_count=count,
            total_size=sent,
            document=PsdDocument.from_payload(body.get('data') or {}),
            metrics=metrics,
        ))
