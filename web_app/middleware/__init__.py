"""Middleware for the qui-vive web app."""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
