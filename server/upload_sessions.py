"""In-memory registry of chunked upload sessions."""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional

from common.chunking import ChunkEncodingError, decode_chunk
from common.constants import MAX_UPLOAD_SIZE_BYTES, SESSION_TIMEOUT_SECONDS
from common.logging_config import get_logger
from common.types import UploadEncoding
from server.exceptions import (
    ChunkDecodeError,
    ChunkOutOfOrderError,
    SizeMismatchError,
    UploadAbortedError,
    UploadNotFoundError,
    UploadTooLargeError,
)

logger = get_logger(__name__)


@dataclass
class UploadSession:
    """State of one upload between init and complete/abort/expiry."""

    upload_id: str
    file_name: str
    encoding: UploadEncoding
    expected_size: Optional[int]
    created_at: float
    last_activity: float
    parts: list[bytes] = field(default_factory=list, repr=False)
    chunk_indices: list[int] = field(default_factory=list)
    size: int = 0
    aborted: bool = False
    completed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def chunk_count(self) -> int:
        return len(self.parts)

    @property
    def progress(self) -> Optional[float]:
        """Fraction of expectedSize received, or None when no size was declared."""
        if not self.expected_size:
            return None
        return self.size / self.expected_size

    def prefix(self, limit: int) -> bytes:
        """First `limit` bytes received so far."""
        out = bytearray()
        for part in self.parts:
            if len(out) >= limit:
                break
            out.extend(part[:limit - len(out)])
        return bytes(out)


class UploadSessionStore:
    """
    Holds upload sessions keyed by uploadId.

    Appends and completion for one session are serialised by the session's
    lock. A session leaves the store on successful complete, on abort, when
    it outgrows max_upload_bytes, or once idle longer than session_timeout.
    """

    def __init__(
        self,
        max_upload_bytes: int = MAX_UPLOAD_SIZE_BYTES,
        session_timeout: float = SESSION_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_upload_bytes = max_upload_bytes
        self.session_timeout = session_timeout
        self._clock = clock
        self._sessions: dict[str, UploadSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, upload_id: str) -> bool:
        return upload_id in self._sessions

    def now(self) -> float:
        return self._clock()

    def _is_expired(self, session: UploadSession, now: float) -> bool:
        return now - session.last_activity > self.session_timeout

    def create(
        self,
        file_name: str,
        encoding: UploadEncoding = UploadEncoding.NONE,
        expected_size: Optional[int] = None,
    ) -> UploadSession:
        """
        Open a new session.

        Raises:
            UploadTooLargeError: If expected_size is above the upload limit
        """
        if expected_size is not None and expected_size > self.max_upload_bytes:
            raise UploadTooLargeError(
                f"Declared size {expected_size} exceeds the {self.max_upload_bytes} byte limit"
            )

        self.expire_stale()
        now = self._clock()
        session = UploadSession(
            upload_id=str(uuid.uuid4()),
            file_name=file_name,
            encoding=encoding,
            expected_size=expected_size,
            created_at=now,
            last_activity=now,
        )
        self._sessions[session.upload_id] = session
        logger.info(
            f"Upload session created: {file_name} encoding={encoding.value} "
            f"expected_size={expected_size} [upload_id={session.upload_id}]"
        )
        return session

    def get(self, upload_id: str) -> UploadSession:
        """
        Look up a live session, dropping it if it has expired.

        Raises:
            UploadNotFoundError: If the session does not exist or expired
        """
        session = self._sessions.get(upload_id)
        if session is None:
            raise UploadNotFoundError(f"Unknown upload session: {upload_id}")
        if self._is_expired(session, self._clock()):
            self._sessions.pop(upload_id, None)
            logger.info(f"Upload session expired on access [upload_id={upload_id}]")
            raise UploadNotFoundError(f"Upload session expired: {upload_id}")
        return session

    def _ensure_live(self, session: UploadSession) -> None:
        """Re-check a session after waiting on its lock."""
        if session.aborted:
            raise UploadAbortedError(f"Upload session was aborted: {session.upload_id}")
        if self._sessions.get(session.upload_id) is not session:
            raise UploadNotFoundError(f"Unknown upload session: {session.upload_id}")

    async def append(
        self,
        upload_id: str,
        chunk_base64: str,
        index: Optional[int] = None,
    ) -> tuple[UploadSession, int]:
        """
        Decode and append one chunk.

        Args:
            upload_id: Session to append to
            chunk_base64: Base64 (optionally gzip) payload
            index: Expected position of the chunk, checked when given

        Returns:
            Tuple of (session, decoded_chunk_size)

        Raises:
            UploadNotFoundError, UploadAbortedError, ChunkOutOfOrderError,
            ChunkDecodeError, UploadTooLargeError
        """
        session = self.get(upload_id)
        async with session.lock:
            self._ensure_live(session)

            if index is not None and index != session.chunk_count:
                raise ChunkOutOfOrderError(
                    f"Expected chunk {session.chunk_count}, got {index}"
                )

            room = self.max_upload_bytes - session.size
            if session.expected_size is not None:
                room = min(room, session.expected_size - session.size)
            try:
                data = decode_chunk(chunk_base64, session.encoding, max_size=room)
            except ChunkEncodingError as e:
                raise ChunkDecodeError(str(e), code=e.code) from e
            if not data:
                raise ChunkDecodeError("Chunk is empty", code="EMPTY_CHUNK")

            new_size = session.size + len(data)
            if session.expected_size is not None and new_size > session.expected_size:
                raise UploadTooLargeError(
                    f"Chunk would bring the upload to {new_size} bytes, "
                    f"above the declared {session.expected_size}",
                    code="EXPECTED_SIZE_EXCEEDED",
                )
            if new_size > self.max_upload_bytes:
                self._sessions.pop(upload_id, None)
                session.parts.clear()
                logger.warning(
                    f"Upload exceeded {self.max_upload_bytes} bytes, session discarded [upload_id={upload_id}]"
                )
                raise UploadTooLargeError(
                    f"Upload exceeds the {self.max_upload_bytes} byte limit"
                )

            session.parts.append(data)
            session.chunk_indices.append(session.chunk_count - 1)
            session.size = new_size
            session.last_activity = self._clock()
            return session, len(data)

    async def complete(self, upload_id: str) -> tuple[UploadSession, bytes]:
        """
        Finalize a session and hand back the reassembled bytes.

        The session is removed on success. A size mismatch leaves it in
        place so the client can send the missing data or abort.

        Raises:
            UploadNotFoundError, UploadAbortedError, SizeMismatchError
        """
        session = self.get(upload_id)
        async with session.lock:
            self._ensure_live(session)

            if session.expected_size is not None and session.size != session.expected_size:
                raise SizeMismatchError(
                    f"Received {session.size} bytes, expected {session.expected_size}"
                )

            data = b"".join(session.parts)
            session.completed = True
            session.parts.clear()
            self._sessions.pop(upload_id, None)
            logger.info(
                f"Upload session completed: {session.file_name} bytes={session.size} "
                f"chunks={len(session.chunk_indices)} [upload_id={upload_id}]"
            )
            return session, data

    async def abort(self, upload_id: str) -> UploadSession:
        """
        Discard a session and its data.

        Raises:
            UploadNotFoundError: If the session does not exist
        """
        session = self.get(upload_id)
        async with session.lock:
            session.aborted = True
            session.parts.clear()
            self._sessions.pop(upload_id, None)
        logger.info(f"Upload session aborted [upload_id={upload_id}]")
        return session

    def expire_stale(self) -> list[str]:
        """
        Remove sessions idle longer than session_timeout.

        Returns:
            Ids of the removed sessions
        """
        now = self._clock()
        expired = [
            upload_id for upload_id, session in self._sessions.items()
            if self._is_expired(session, now)
        ]
        for upload_id in expired:
            session = self._sessions.pop(upload_id)
            session.parts.clear()
        if expired:
            logger.info(f"Expired {len(expired)} idle upload sessions")
        return expired
