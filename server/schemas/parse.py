"""Pydantic schemas for the direct parse endpoint."""

from typing import Any, Optional
from pydantic import Field, model_validator

from server.schemas.common import CamelModel


class ParsePsdRequest(CamelModel):
    """Request model for parsing a small document sent inline."""
    file_path: Optional[str] = Field(default=None, alias="filePath")
    file_data: Optional[str] = Field(default=None, alias="fileData")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    include_image_data: bool = Field(default=False, alias="includeImageData")

    @model_validator(mode="after")
    def _require_source(self) -> "ParsePsdRequest":
        if not (self.file_data or self.file_path):
            raise ValueError("filePath or fileData is required")
        return self

    @property
    def source(self) -> str:
        return self.file_data or self.file_path


class ParsePsdResponse(CamelModel):
    """Response model for a parsed document."""
    success: bool = True
    data: dict[str, Any]
