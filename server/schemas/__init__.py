"""Pydantic schemas for API requests and responses."""

from server.schemas.chunks import (
    ChunkAbortResponse,
    ChunkAppendRequest,
    ChunkAppendResponse,
    ChunkCompleteResponse,
    ChunkInitRequest,
    ChunkInitResponse,
    PartialInspectResponse,
    UploadIdRequest,
    UploadMetrics,
    UploadStatusResponse,
)
from server.schemas.parse import ParsePsdRequest, ParsePsdResponse
from server.schemas.common import ErrorResponse

__all__ = [
    "ChunkAbortResponse",
    "ChunkAppendRequest",
    "ChunkAppendResponse",
    "ChunkCompleteResponse",
    "ChunkInitRequest",
    "ChunkInitResponse",
    "PartialInspectResponse",
    "UploadIdRequest",
    "UploadMetrics",
    "UploadStatusResponse",
    "ParsePsdRequest",
    "ParsePsdResponse",
    "ErrorResponse",
]
