"""FastAPI dependency providers for the upload server."""

from typing import Optional

from fastapi import Depends

from server.config import MAX_DIRECT_BYTES, MAX_UPLOAD_BYTES, SESSION_TIMEOUT
from server.services.parse_service import ParseService
from server.services.upload_service import UploadService
from server.upload_sessions import UploadSessionStore

_session_store: Optional[UploadSessionStore] = None


def get_session_store() -> UploadSessionStore:
    """Process-wide session store, created on first use."""
    global _session_store
    if _session_store is None:
        _session_store = UploadSessionStore(
            max_upload_bytes=MAX_UPLOAD_BYTES,
            session_timeout=SESSION_TIMEOUT,
        )
    return _session_store


def get_upload_service(store: UploadSessionStore = Depends(get_session_store)) -> UploadService:
    return UploadService(store)


def get_parse_service() -> ParseService:
    return ParseService(max_direct_bytes=MAX_DIRECT_BYTES)
