"""Entry point for the PSD upload server."""

import uvicorn
import time
import uuid
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.constants import BUILD_VERSION
from common.logging_config import setup_logging
from server.config import SERVER_HOST, SERVER_PORT
from server.dependencies import get_session_store
from server.routes.chunk_routes import router as chunk_router
from server.routes.parse_routes import router as parse_router
from server.schemas.common import ErrorResponse
from server.cleanup_task import ExpiredSessionCleaner
from server.exceptions import (
    UploadServiceError,
    UploadNotFoundError,
    UploadAbortedError,
    ChunkOutOfOrderError,
    ChunkDecodeError,
    UploadTooLargeError,
    SizeMismatchError,
    InvalidPsdSignatureError,
    PsdParseError,
    InvalidDataUrlError,
)

logger = setup_logging('server')

app = FastAPI(
    title="PSD Converter Upload Server",
    description="Chunked upload sessions and PSD parsing for the converter client",
    version=BUILD_VERSION
)

cleanup_task = ExpiredSessionCleaner(get_session_store())


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Start background tasks on application startup.
    """
    logger.info("Upload server starting up...")
    await cleanup_task.start()
    logger.info("Background cleanup task started")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup resources on application shutdown.
    """
    logger.info("Upload server shutting down...")
    await cleanup_task.stop()
    logger.info("Cleanup task stopped")


def _error_response(request: Request, exc: UploadServiceError, status_code: int, label: str) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"{label}: {exc} code={exc.code} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=exc.code, detail=str(exc)).model_dump()
    )


@app.exception_handler(UploadNotFoundError)
async def upload_not_found_handler(request: Request, exc: UploadNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "Upload not found error")


@app.exception_handler(UploadAbortedError)
async def upload_aborted_handler(request: Request, exc: UploadAbortedError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "Upload aborted error")


@app.exception_handler(ChunkOutOfOrderError)
async def chunk_out_of_order_handler(request: Request, exc: ChunkOutOfOrderError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "Chunk out of order error")


@app.exception_handler(ChunkDecodeError)
async def chunk_decode_handler(request: Request, exc: ChunkDecodeError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "Chunk decode error")


@app.exception_handler(UploadTooLargeError)
async def upload_too_large_handler(request: Request, exc: UploadTooLargeError):
    return _error_response(request, exc, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Upload too large error")


@app.exception_handler(SizeMismatchError)
async def size_mismatch_handler(request: Request, exc: SizeMismatchError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "Size mismatch error")


@app.exception_handler(InvalidPsdSignatureError)
async def invalid_signature_handler(request: Request, exc: InvalidPsdSignatureError):
    return _error_response(request, exc, status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid PSD signature error")


@app.exception_handler(PsdParseError)
async def psd_parse_handler(request: Request, exc: PsdParseError):
    return _error_response(request, exc, status.HTTP_422_UNPROCESSABLE_ENTITY, "PSD parse error")


@app.exception_handler(InvalidDataUrlError)
async def invalid_data_url_handler(request: Request, exc: InvalidDataUrlError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "Invalid data URL error")


@app.exception_handler(UploadServiceError)
async def upload_service_error_handler(request: Request, exc: UploadServiceError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Upload service exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=exc.code, detail=str(exc)).model_dump()
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    logger.warning(
        f"Request validation error: {problems} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="INVALID_REQUEST", detail=problems).model_dump()
    )


app.include_router(chunk_router)
app.include_router(parse_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "PSD Converter Upload Server", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "server", "activeUploads": len(get_session_store())}


@app.get("/api/version")
async def version():
    """Build version of the running server."""
    return {"buildVersion": BUILD_VERSION}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "server.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
    )


if __name__ == "__main__":
    main()
