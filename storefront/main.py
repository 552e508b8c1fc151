"""Storefront catalog API main application module.

This module builds the FastAPI application and configures core
middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.catalog import router as catalog_router
from storefront.api.health import router as health_router
from storefront.api.middleware import setup_middleware
from storefront.api.prefetch import router as prefetch_router
from storefront.api.search import router as search_router
from storefront.catalog.exceptions import (
    CatalogIntegrityError,
    QueryDeadlineExceededError,
)
from storefront.catalog.repository import SqlCatalogStore
from storefront.catalog.service import CatalogService
from storefront.catalog.store import InMemoryCatalogStore
from storefront.infrastructure.config import Settings, get_settings
from storefront.infrastructure.database import Database
from storefront.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Builds the catalog store and service unless one was supplied to
    ``create_app``. The database engine is disposed on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, json=settings.log_json)

    logger.info(
        "Starting storefront catalog API",
        version=settings.api_version,
        debug=settings.debug,
    )

    database: Database | None = None
    if getattr(app.state, "catalog_service", None) is None:
        if settings.catalog_fixture_path:
            store = InMemoryCatalogStore.from_json_file(settings.catalog_fixture_path)
            logger.info("Serving catalog from fixture", path=settings.catalog_fixture_path)
        else:
            database = Database.from_settings(settings)
            store = SqlCatalogStore(
                database.session_factory,
                batch_size=settings.catalog_scan_batch_size,
            )
        app.state.catalog_service = CatalogService.from_settings(store, settings)

    yield

    logger.info("Shutting down storefront catalog API")
    if database is not None:
        await database.dispose()
        app.state.catalog_service = None


def create_app(
    settings: Settings | None = None,
    service: CatalogService | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings to use; defaults to the environment.
        service: Pre-built catalog service, bypassing store construction.

    Returns:
        Configured application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Storefront Catalog API",
        description="Read-only product catalog query layer",
        version=settings.api_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.catalog_service = service

    # CORS middleware (must be added before custom middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # Setup custom middleware (request ID, error handling)
    setup_middleware(app)

    app.include_router(health_router, tags=["Health"])
    app.include_router(catalog_router)
    app.include_router(search_router)
    app.include_router(prefetch_router)

    register_exception_handlers(app)
    return app


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: list | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details or [],
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map exceptions to the standard error response format."""

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent format."""
        detail = exc.detail
        if isinstance(detail, dict):
            error_code = detail.get("error_code", "ERROR")
            message = detail.get("message", str(detail))
            details = detail.get("details", [])
        else:
            error_code = "ERROR"
            message = str(detail)
            details = []

        return _error_response(request, exc.status_code, error_code, message, details)

    @app.exception_handler(CatalogIntegrityError)
    async def integrity_error_handler(
        request: Request, exc: CatalogIntegrityError
    ) -> JSONResponse:
        """Duplicate keys in reference data are a server-side fault."""
        logger.error(
            "Catalog integrity violation",
            path=request.url.path,
            **exc.details,
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "CATALOG_INTEGRITY_ERROR",
            exc.message,
        )

    @app.exception_handler(QueryDeadlineExceededError)
    async def deadline_error_handler(
        request: Request, exc: QueryDeadlineExceededError
    ) -> JSONResponse:
        return _error_response(
            request,
            status.HTTP_504_GATEWAY_TIMEOUT,
            "QUERY_DEADLINE_EXCEEDED",
            exc.message,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions with consistent format."""
        logger.exception(
            "Unhandled exception in handler",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "An internal error occurred",
        )


app = create_app()
