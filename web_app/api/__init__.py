"""HTTP routes for qui-vive."""

from .routes import router as api_router

__all__ = ["api_router"]
