"""FastAPI application factory.

Run with uvicorn:
    uvicorn gmail_integration.api.app:create_app --factory
"""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from gmail_integration import __version__
from gmail_integration.api.routes import router as integration_router
from gmail_integration.config import Settings
from gmail_integration.exceptions import (
    AccountNotFoundError,
    ConfigurationError,
    IntegrationError,
    ValidationError,
)
from gmail_integration.gateway import IntegrationGateway
from gmail_integration.store import IntegrationStore

logger = structlog.get_logger()

_STATUS_CODES: dict[type[IntegrationError], int] = {
    AccountNotFoundError: 404,
    ValidationError: 400,
    ConfigurationError: 500,
}


async def _integration_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = next(
        (code for kind, code in _STATUS_CODES.items() if isinstance(exc, kind)),
        502,
    )
    logger.error(
        "request_failed",
        method=request.method,
        path=request.url.path,
        status_code=status_code,
        error=str(exc),
    )
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


async def _log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    logger.debug("http_request", method=request.method, path=request.url.path)
    response = await call_next(request)
    logger.debug(
        "http_response",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
    )
    return response


def create_app(
    settings: Settings | None = None,
    store: IntegrationStore | None = None,
    gateway: IntegrationGateway | None = None,
) -> FastAPI:
    """Build the HTTP application.

    Args:
        settings: Application settings. If None, uses default settings.
        store: Store to use. If None, opens (and initializes) settings.db_path.
        gateway: Gateway to use. If None, one is built around the store.
    """
    from gmail_integration.config import get_settings

    settings = settings or get_settings()

    if gateway is None:
        if store is None:
            store = IntegrationStore(settings.db_path)
            store.initialize()
        gateway = IntegrationGateway(store, settings=settings)

    app = FastAPI(title="Gmail Integration Adapter", version=__version__)
    app.state.settings = settings
    app.state.gateway = gateway

    app.middleware("http")(_log_requests)
    app.add_exception_handler(IntegrationError, _integration_error_handler)
    app.include_router(integration_router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
