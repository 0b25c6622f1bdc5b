"""Chunked upload API routes."""

from fastapi import APIRouter, Depends

from server.dependencies import get_upload_service
from server.schemas.chunks import (
    ChunkAbortResponse,
    ChunkAppendRequest,
    ChunkAppendResponse,
    ChunkCompleteResponse,
    ChunkInitRequest,
    ChunkInitResponse,
    PartialInspectResponse,
    UploadIdRequest,
    UploadStatusResponse,
)
from server.schemas.common import ErrorResponse
from server.services.upload_service import UploadService

router = APIRouter(
    prefix="/api/psd-chunks",
    tags=["Chunked Upload"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


@router.post("/init", response_model=ChunkInitResponse)
async def init_upload(
    request: ChunkInitRequest,
    service: UploadService = Depends(get_upload_service),
):
    """
    Open an upload session.

    Parameters:
        - fileName: Name of the document being uploaded
        - expectedSize: Total size in bytes (optional, enables progress)
        - encoding: "none" or "gzip" (per-chunk compression)

    Raises:
        - 413: expectedSize above the upload limit
    """
    return await service.init(request.file_name, request.expected_size, request.encoding)


@router.post("/append", response_model=ChunkAppendResponse, response_model_exclude_none=True)
async def append_chunk(
    request: ChunkAppendRequest,
    service: UploadService = Depends(get_upload_service),
):
    """
    Append one base64 chunk.

    Parameters:
        - uploadId: Session id from init
        - chunkBase64: Chunk payload
        - index: Position of the chunk; must equal the number already received

    Raises:
        - 400: Invalid base64, gzip failure or empty chunk
        - 404: Unknown or expired session
        - 409: Chunk out of order or session aborted
        - 413: Upload limit or declared size exceeded
    """
    return await service.append(request.upload_id, request.chunk_base64, request.index)


@router.post("/complete", response_model=ChunkCompleteResponse)
async def complete_upload(
    request: UploadIdRequest,
    service: UploadService = Depends(get_upload_service),
):
    """
    Reassemble the upload and parse it.

    Raises:
        - 404: Unknown or expired session
        - 409: Received size differs from expectedSize
        - 422: Not a PSD, or the parser rejected it
    """
    return await service.complete(request.upload_id)


@router.post("/abort", response_model=ChunkAbortResponse)
async def abort_upload(
    request: UploadIdRequest,
    service: UploadService = Depends(get_upload_service),
):
    """Discard a session and its data."""
    return await service.abort(request.upload_id)


@router.post("/status", response_model=UploadStatusResponse)
async def upload_status(
    request: UploadIdRequest,
    service: UploadService = Depends(get_upload_service),
):
    """Report how much of an upload has arrived."""
    return await service.status(request.upload_id)


@router.post("/partial", response_model=PartialInspectResponse)
async def partial_inspect(
    request: UploadIdRequest,
    service: UploadService = Depends(get_upload_service),
):
    """Decode the document header from the data received so far."""
    return await service.partial(request.upload_id)
