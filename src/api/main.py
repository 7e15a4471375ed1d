"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    admin_router,
    device_users_router,
    health_router,
    items_router,
    sync_router,
    webhook_router,
)
from src.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Initializes resources on startup and cleans up on shutdown.
    """
    settings = get_settings()
    configure_logging()

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        db_path=str(settings.storage.db_path),
        remote_url=settings.remote.url,
    )

    # Initialize database
    try:
        from src.infrastructure.storage.sqlite import get_pool
        from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

        await run_migrations()
        logger.info("database_initialized")

        await get_pool()
        logger.info("connection_pool_ready")

    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    if not settings.webhook.secret:
        logger.warning("webhook_disabled", reason="WEBHOOK_SECRET not set")

    # Start the sync engine's background loops
    from src.application.services import get_sync_engine

    engine = await get_sync_engine()
    engine.start(
        initial_delay_seconds=settings.sync.initial_delay_seconds,
        interval_seconds=settings.sync.interval_seconds,
        probe_interval_seconds=settings.sync.probe_interval_seconds,
    )

    logger.info("application_started", online=engine.is_online)

    yield

    # Shutdown
    logger.info("application_stopping")

    await engine.stop()

    try:
        from src.application.services import reset_services
        from src.infrastructure.storage.sqlite import close_pool, reset_local_store

        await close_pool()
        reset_local_store()
        reset_services()
        logger.info("connection_pool_closed")

    except Exception as e:
        logger.warning("connection_pool_close_failed", error=str(e))

    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Stockpad Inventory API",
        description="Offline-first inventory tracking with remote sync and signed stock webhooks",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    # CORS
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(items_router)
    app.include_router(device_users_router)
    app.include_router(sync_router)
    app.include_router(webhook_router)
    app.include_router(admin_router)

    return app


# Create app instance
app = create_app()


# Root health endpoint (for k8s/docker health checks)
@app.get("/health")
async def root_health() -> dict[str, str]:
    """Simple health check at root level."""
    return {
        "status": "healthy",
        "version": get_settings().app_version,
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
