"""Service layer for business logic."""

from server.services.parse_service import ParseService
from server.services.upload_service import UploadService

__all__ = [
    "ParseService",
    "UploadService",
]
