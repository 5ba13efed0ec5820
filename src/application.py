"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.routes import include_api_routes
from src.config import settings
from src.errors import (
    ClaimTransitionError,
    FetchError,
    InvalidFilterError,
    InvalidIdError,
    InvalidTransitionError,
    StorefrontAPIError,
    UnknownClaimError,
)
from src.services.clients.storefront_client import get_storefront_client
from src.services.collection.auto_refresh import create_auto_refresh_worker

logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (InvalidFilterError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidIdError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (UnknownClaimError, status.HTTP_404_NOT_FOUND),
    (FetchError, status.HTTP_502_BAD_GATEWAY),
    (ClaimTransitionError, status.HTTP_502_BAD_GATEWAY),
    (StorefrontAPIError, status.HTTP_502_BAD_GATEWAY),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    worker = None
    task = None
    if settings.is_production:
        worker = create_auto_refresh_worker()
        task = asyncio.create_task(worker.run_forever())
        logger.info("Started auto-refresh worker %s", worker.worker_name)
    else:
        logger.info("Skipping auto-refresh worker in development mode")

    yield

    if worker is not None and task is not None:
        worker.shutdown()
        await task
    await get_storefront_client().aclose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Deals Storefront Core",
        description="Query cache, claim lifecycle and notification sync for the deals storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    _register_error_handlers(app)
    include_api_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _register_error_handlers(app: FastAPI) -> None:
    """Translate storefront errors into HTTP responses."""

    for error_type, status_code in _ERROR_STATUS:
        app.add_exception_handler(error_type, _make_handler(status_code))


def _make_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        detail: dict[str, object] = {"detail": str(exc), "error": type(exc).__name__}
        code = getattr(exc, "code", None)
        if code:
            detail["code"] = code
        if status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content=detail)

    return handler
