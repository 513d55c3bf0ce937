from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware.error_handler import global_exception_handler
from src.api.middleware.logging_middleware import LoggingMiddleware
from src.api.v1.router import api_router
from src.core.config import settings
from src.core.exceptions import CircuitOpenError, ServiceException
from src.core.logging import get_logger, setup_logging
from src.infrastructure.container import Container

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    # Setup logging first
    setup_logging()

    container: Container = app.state.container
    resilience = container.config.resilience

    # Startup
    logger.info(
        "application_starting",
        environment=container.config.environment,
        debug=container.config.debug,
        failure_threshold=resilience.default.failure_threshold,
        reset_timeout=resilience.default.reset_timeout,
        breaker_overrides=sorted(resilience.overrides),
    )

    yield

    # Shutdown
    logger.info(
        "application_shutdown",
        circuits={
            name: status.state.value
            for name, status in container.breaker_registry.get_all_statuses().items()
        },
    )


def create_application(container: Optional[Container] = None) -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Circuit breaker status and administration for external dependencies",
        version="1.0.0",
        openapi_url=f"/api/{settings.API_VERSION}/openapi.json",
        lifespan=lifespan,
        debug=settings.DEBUG,
    )

    app.state.container = container or Container()

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add logging middleware
    app.add_middleware(LoggingMiddleware)

    # Add exception handlers
    app.add_exception_handler(CircuitOpenError, global_exception_handler)
    app.add_exception_handler(ServiceException, global_exception_handler)
    app.add_exception_handler(HTTPException, global_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Include API routers
    app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "1.0.0",
            "docs": "/docs",
            "health": f"/api/{settings.API_VERSION}/monitoring/health",
        }

    return app
