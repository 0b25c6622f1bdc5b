"""API routes package."""

from server.routes.chunk_routes import router as chunk_router
from server.routes.parse_routes import router as parse_router

__all__ = ["chunk_router", "parse_router"]
