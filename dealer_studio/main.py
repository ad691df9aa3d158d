"""Main FastAPI application entry point.

This module serves as the primary entry point for Dealer Studio.
It handles all core application setup including:
- FastAPI application initialization and configuration
- Middleware setup for CORS and request logging
- Service construction (database, stores, image dispatcher)
- Route registration and API versioning
- Error envelope handlers
- Health check endpoint
"""

# Standard library imports
import time
from contextlib import asynccontextmanager
from typing import Optional

# FastAPI imports
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis import asyncio as aioredis
from starlette.exceptions import HTTPException as StarletteHTTPException

# Internal imports
from dealer_studio.api.v1.router import api_router
from dealer_studio.core.config import Settings, get_settings
from dealer_studio.core.exceptions import AppException
from dealer_studio.core.logging import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
    get_logger,
    setup_logging
)
from dealer_studio.database.dealer_repository import DealerRepository
from dealer_studio.database.session import SessionManager
from dealer_studio.database.stores import RedisDealerStore, RoutingDealerStore, SqlDealerStore
from dealer_studio.services.dealer_lifecycle import DealerLifecycleService
from dealer_studio.services.image_generation import ImageGenerationService

logger = get_logger(__name__)


async def init_services(app: FastAPI, settings: Settings) -> None:
    """Build the service graph and attach it to ``app.state``."""
    session_manager = SessionManager(settings)
    await session_manager.init_db()
    logger.info("Database initialized successfully")

    ephemeral = None
    if settings.REDIS_URL:
        ephemeral = RedisDealerStore(
            aioredis.from_url(settings.REDIS_URL),
            ttl_seconds=settings.DRAFT_TTL_SECONDS
        )

    store = RoutingDealerStore(
        SqlDealerStore(session_manager),
        ephemeral,
        draft_prefix=settings.DRAFT_DEALER_PREFIX
    )
    image_service = ImageGenerationService(settings)
    repository = DealerRepository(store, draft_prefix=settings.DRAFT_DEALER_PREFIX)

    app.state.session_manager = session_manager
    app.state.ephemeral_store = ephemeral
    app.state.image_service = image_service
    app.state.lifecycle = DealerLifecycleService(repository, image_service)


async def close_services(app: FastAPI) -> None:
    image_service = getattr(app.state, "image_service", None)
    if image_service is not None:
        await image_service.close()
    ephemeral = getattr(app.state, "ephemeral_store", None)
    if ephemeral is not None:
        await ephemeral.close()
    session_manager = getattr(app.state, "session_manager", None)
    if session_manager is not None:
        await session_manager.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handle application startup and shutdown events.
    This context manager ensures proper resource management.
    """
    setup_logging(app.state.settings.DEBUG)
    logger.info("Starting up application...")
    try:
        await init_services(app, app.state.settings)
        logger.info("Services initialized successfully")
        yield
    except Exception as e:
        logger.error("Startup failed", error=e)
        raise
    finally:
        logger.info("Shutting down application...")
        await close_services(app)
        logger.info("Cleanup completed")


def _error_response(status_code: int, error: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"error": error, "details": details})
    )


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    Handles all application setup including middleware, routes, and error handlers.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Dealer Studio API",
        description="Dealer persona management and outfit image generation",
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if not settings.PROD else None,
        redoc_url="/api/redoc" if not settings.PROD else None,
    )
    app.state.settings = settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add custom middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register exception handlers
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        """Handle custom application exceptions"""
        return _error_response(exc.status_code, exc.detail, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors with clear messages"""
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            exc.errors()
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error", error=exc, path=request.url.path)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error"
        )

    # Register routers
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint for monitoring systems.
        Checks the database connection.
        """
        session_manager = getattr(request.app.state, "session_manager", None)
        database_ok = session_manager is not None and await session_manager.healthcheck()
        body = {
            "status": "healthy" if database_ok else "unhealthy",
            "timestamp": time.time(),
            "version": request.app.version,
            "services": {"database": "connected" if database_ok else "unavailable"}
        }
        if not database_ok:
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
        return body

    return app


# Create the application instance
app = create_application()

# Only run the server directly in development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dealer_studio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not get_settings().PROD,
        log_level="debug" if not get_settings().PROD else "info"
    )
