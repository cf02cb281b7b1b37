"""Logging middleware."""

import time
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from quivive.common.logging_config import get_logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging."""
    
    def __init__(self, app, logger: logging.Logger = None):
        """Initialize logging middleware."""
        super().__init__(app)
        self.logger = logger or get_logger("quivive.web")
    
    async def dispatch(self, request: Request, call_next: Callable):
        """Log one line per request with status and duration."""
        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        
        response = await call_next(request)
        
        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            f"{client_ip} {request.method} {request.url.path} - "
            f"Status: {response.status_code} - Duration: {duration_ms:.2f}ms"
        )
        
        return response
