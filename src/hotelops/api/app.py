"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.api.middleware import (
    ErrorHandlingMiddleware,
    RequestContextMiddleware,
    RequestLoggingMiddleware,
)
from hotelops.api.routers import health_router, v1_router
from hotelops.config.settings import Settings, get_settings
from hotelops.config.validation import validate_configuration, validate_or_raise
from hotelops.core.logging import setup_logging


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing)
        session_factory: Optional session factory; defaults to the
            process-wide factory built from ``settings.DATABASE_URL``

    Returns:
        Configured FastAPI application

    Example:
        # Production
        app = create_app()

        # Testing
        app = create_app(settings=Settings(ENVIRONMENT="test"), session_factory=factory)

        # Run with uvicorn
        uvicorn hotelops.api.app:create_app --factory
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="HotelOps API",
        description="Multi-tenant hotel management console",
        version="0.1.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=_lifespan,
    )

    # Store settings and database access on app state for dependencies
    app.state.settings = settings
    app.state.session_factory = session_factory

    _configure_middleware(app, settings)
    _configure_routers(app)

    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging, checks configuration and, when the app owns the
    process-wide engine, opens and disposes it.
    """
    settings: Settings = app.state.settings
    setup_logging(
        log_level=settings.log_level,
        json_format=settings.ENVIRONMENT == "production",
    )
    logger = structlog.get_logger("hotelops.api")
    logger.info("application_starting", environment=settings.ENVIRONMENT)

    for issue in validate_configuration(settings):
        logger.warning("configuration_issue", issue=str(issue))
    validate_or_raise(settings)

    owns_engine = app.state.session_factory is None
    if owns_engine:
        try:
            from hotelops.db.config import init_db

            await init_db()
            logger.info("database_connected")
        except Exception as e:
            logger.warning("database_initialization_skipped", error=str(e))

    yield

    logger.info("application_stopping")
    if owns_engine:
        try:
            from hotelops.db.config import close_db

            await close_db()
        except Exception as e:
            logger.warning("database_shutdown_error", error=str(e))


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure middleware stack.

    Middleware order (outermost to innermost execution):
    1. RequestLoggingMiddleware - Logs every request with status and duration
    2. ErrorHandlingMiddleware - Converts exceptions to APIError responses
    3. CORSMiddleware - Handles CORS (if configured)
    4. RequestContextMiddleware - Request id and structlog context

    Authentication, tenant resolution and permission checks run as
    endpoint dependencies (see hotelops.api.dependencies).

    Note: Middleware is added in reverse order because Starlette
    processes them from last-added to first-added.
    """
    # Innermost: request id and log context
    app.add_middleware(RequestContextMiddleware)

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Error handling (catches exceptions from all inner middleware and endpoints)
    app.add_middleware(ErrorHandlingMiddleware)

    # Outermost: request logging
    app.add_middleware(RequestLoggingMiddleware)


def _configure_routers(app: FastAPI) -> None:
    """Configure API routers."""
    # Health check endpoints (no prefix - at root level)
    app.include_router(health_router)

    app.include_router(v1_router)


# Usage: uvicorn hotelops.api.app:app
app = create_app()
