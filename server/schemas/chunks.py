"""Pydantic schemas for the chunked upload endpoints."""

from typing import Any, Optional
from pydantic import Field

from common.types import UploadEncoding
from server.schemas.common import CamelModel


class ChunkInitRequest(CamelModel):
    """Request model for opening an upload session."""
    file_name: str = Field(alias="fileName", min_length=1)
    expected_size: Optional[int] = Field(default=None, alias="expectedSize", gt=0)
    encoding: UploadEncoding = UploadEncoding.NONE


class ChunkInitResponse(CamelModel):
    """Response model for an opened session."""
    success: bool = True
    upload_id: str = Field(alias="uploadId")
    encoding: UploadEncoding
    expected_size: Optional[int] = Field(default=None, alias="expectedSize")


class ChunkAppendRequest(CamelModel):
    """Request model for appending one chunk."""
    upload_id: str = Field(alias="uploadId", min_length=1)
    chunk_base64: str = Field(alias="chunkBase64")
    index: Optional[int] = Field(default=None, ge=0)


class ChunkAppendResponse(CamelModel):
    """Response model for an accepted chunk."""
    success: bool = True
    received: int
    total_size: int = Field(alias="totalSize")
    progress: Optional[float] = None
    chunk_index: int = Field(alias="chunkIndex")


class UploadIdRequest(CamelModel):
    """Request model for operations addressing a session by id."""
    upload_id: str = Field(alias="uploadId", min_length=1)


class UploadMetrics(CamelModel):
    """Timing and size figures for a completed upload."""
    total_size: int = Field(alias="totalSize")
    chunk_count: int = Field(alias="chunkCount")
    avg_chunk: int = Field(alias="avgChunk")
    parse_ms: int = Field(alias="parseMs")
    total_session_ms: int = Field(alias="totalSessionMs")


class ChunkCompleteResponse(CamelModel):
    """Response model for a completed and parsed upload."""
    success: bool = True
    data: dict[str, Any]
    metrics: UploadMetrics


class ChunkAbortResponse(CamelModel):
    """Response model for an aborted session."""
    success: bool = True
    aborted: bool = True


class UploadStatusResponse(CamelModel):
    """Response model for session status."""
    success: bool = True
    upload_id: str = Field(alias="uploadId")
    file_name: str = Field(alias="fileName")
    encoding: UploadEncoding
    total_size: int = Field(alias="totalSize")
    chunk_count: int = Field(alias="chunkCount")
    expected_size: Optional[int] = Field(default=None, alias="expectedSize")
    progress: Optional[float] = None
    aborted: bool = False
    age_seconds: float = Field(alias="ageSeconds")
    idle_seconds: float = Field(alias="idleSeconds")


class PartialInspectResponse(CamelModel):
    """Response model for header inspection of a partially received upload."""
    success: bool = True
    upload_id: str = Field(alias="uploadId")
    received_bytes: int = Field(alias="receivedBytes")
    inspected_bytes: int = Field(alias="inspectedBytes")
    header: dict[str, Any]
