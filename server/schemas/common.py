"""Common schemas used across multiple endpoints."""

from pydantic import BaseModel, ConfigDict


class CamelModel(BaseModel):
    """Base model whose fields travel as camelCase on the wire."""
    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Response model for errors."""
    success: bool = False
    error: str
    detail: str
