"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect

from quivive.exceptions import InvalidRequestError, PayloadTooLargeError, StoreError

from .api import api_router
from .middleware.logging import LoggingMiddleware


logger = logging.getLogger("quivive.web")


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown methods on known paths are reported as missing routes
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return PlainTextResponse(str(exc), status_code=status.HTTP_400_BAD_REQUEST)


async def payload_too_large_handler(request: Request, exc: PayloadTooLargeError):
    return PlainTextResponse(str(exc), status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
    return PlainTextResponse("Store error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def client_disconnect_handler(request: Request, exc: ClientDisconnect):
    logger.info(f"Client disconnected during {request.method} {request.url.path}")
    return PlainTextResponse("Client disconnected", status_code=status.HTTP_400_BAD_REQUEST)


def create_app(
    store_instance,
    service_instance,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.
    
    Args:
        store_instance: Entry store instance
        service_instance: Entry service instance
        config: Configuration instance
        
    Returns:
        Configured FastAPI app
    """
    # Every single-segment path is an identifier, so no docs routes
    app = FastAPI(
        title="qui-vive",
        description="Ephemeral key/value and URL redirection service",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )
    
    # Store instances in app state for access in routes
    app.state.store = store_instance
    app.state.service = service_instance
    app.state.config = config
    
    app.add_middleware(LoggingMiddleware)
    
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(PayloadTooLargeError, payload_too_large_handler)
    app.add_exception_handler(InvalidRequestError, invalid_request_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(ClientDisconnect, client_disconnect_handler)
    
    app.include_router(api_router)
    
    return app
