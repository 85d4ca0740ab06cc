"""
QueueFlow - Main FastAPI Application

This is the entry point for the FastAPI application.
It configures middleware, routes, and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import Settings, get_settings
from .container import ServiceContainer, build_container
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .utils.logger import setup_logging, get_logger

logger = get_logger(__name__)

APP_VERSION = "1.0.0"


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Creates the database schema
        - Restores the last reset marker
        - Starts the daily reset scheduler (when enabled)

    Shutdown:
        - Stops scheduler
        - Disposes database connections
    """
    container: ServiceContainer = app.state.container
    config = container.config

    setup_logging(config)
    logger.info("Starting QueueFlow...")

    await container.database.create_schema()
    logger.info(f"Database schema ready ({container.database.backend_name})")

    await container.reset.load_last_reset()

    if config.scheduler_enabled:
        try:
            container.scheduler.start()
            await container.scheduler.synchronize()
            logger.info("Reset scheduler started")
        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")

    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Shutting down...")
    container.scheduler.stop()
    await container.database.dispose()
    logger.info("Application shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to build with (environment by default)
        container: Prebuilt object graph, mainly for tests

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or (container.config if container else get_settings())
    container = container or build_container(settings)

    application = FastAPI(
        title="QueueFlow",
        description="Queue management backend for kiosks, service counters and waiting-room displays",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
    )
    application.state.container = container

    _configure_middleware(application, settings)
    register_error_handlers(application)
    _configure_routes(application, settings)

    return application


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware."""
    # allow_credentials must be False when allowing all origins
    allow_all = settings.cors_origins.strip() == "*"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )

    app.add_middleware(CorrelationIdMiddleware)


def _configure_routes(app: FastAPI, settings: Settings) -> None:
    """Configure application routes."""
    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health():
        """
        Health check endpoint.

        Returns application health status including database connectivity.
        """
        container: ServiceContainer = app.state.container
        database_health = await container.database.health_check()
        return {
            "status": "healthy" if database_health.get("status") == "healthy" else "degraded",
            "version": APP_VERSION,
            "environment": settings.environment,
            "database": database_health,
            "scheduler": "running" if container.scheduler.is_running else "stopped",
            "subscribers": container.broadcaster.subscriber_count,
        }

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "QueueFlow",
            "version": APP_VERSION,
            "docs": "/api/docs" if settings.debug else None
        }


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()
