"""FastAPI main application with app factory and route configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .deps import build_dashboard, build_session_provider, build_store_client, get_settings
from .errors import AuthError, StoreError, ValidationError
from .models.task import utc_now
from .routes import auth, notifications, tasks
from .utils.logging import (
    configure_request_logging,
    log_shutdown_info,
    log_startup_info,
    setup_logging,
)

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    settings: Settings = app.state.settings

    try:
        setup_logging(settings)
        log_startup_info(settings)

        session_provider = build_session_provider(settings)
        await session_provider.initialize()
        logger.info("Session provider initialized")

        store = build_store_client(settings, session_provider)
        logger.info(f"Task store initialized ({settings.store_backend})")

        app.state.session_provider = session_provider
        app.state.store = store
        app.state.dashboard = build_dashboard(settings, store, session_provider)

        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Error during application startup: {str(e)}")
        raise

    yield

    log_shutdown_info()

    try:
        app.state.dashboard.close()
        await app.state.store.close()
        await app.state.session_provider.close()
        logger.info("Application shutdown completed successfully")

    except Exception as e:
        logger.error(f"Error during application shutdown: {str(e)}")


def _error_body(request: Request, error: str, status_code: int, **extra) -> dict:
    body = {"error": error, "status_code": status_code, "path": str(request.url)}
    body.update(extra)
    return body


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-loaded ones

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Taskboard",
        description="Personal task manager: create, edit, complete, search, filter and sort tasks",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(configure_request_logging())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with proper logging."""
        logger.warning(
            f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.detail, exc.status_code),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle request validation errors with detailed information."""
        logger.warning(
            f"Validation error for {request.method} {request.url}: {exc.errors()}"
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                request,
                "Validation error",
                422,
                details=jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
            ),
        )

    @app.exception_handler(ValidationError)
    async def form_validation_exception_handler(request: Request, exc: ValidationError):
        """Handle task form errors, keyed by field."""
        logger.info(f"Form validation failed for {request.method} {request.url}: {exc.errors}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(request, "Validation error", 422, fields=exc.errors),
        )

    @app.exception_handler(StoreError)
    async def store_exception_handler(request: Request, exc: StoreError):
        """Handle store and auth failures that escaped the dashboard."""
        status_code = (
            status.HTTP_401_UNAUTHORIZED if isinstance(exc, AuthError)
            else status.HTTP_502_BAD_GATEWAY
        )
        logger.error(f"Store error for {request.method} {request.url}: {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content=_error_body(request, exc.message, status_code),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            f"Unexpected error for {request.method} {request.url}: {str(exc)}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, "Internal server error", 500),
        )

    @app.get("/healthz", tags=["health"])
    async def health_check(request: Request):
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Health status information
        """
        state = request.app.state
        session_provider = getattr(state, "session_provider", None)
        dashboard = getattr(state, "dashboard", None)

        health_status = {
            "status": "healthy",
            "timestamp": utc_now().isoformat(),
            "version": VERSION,
            "store_backend": state.settings.store_backend,
            "services": {
                "session_provider": "initialized" if session_provider else "not_initialized",
                "dashboard": "initialized" if dashboard else "not_initialized",
            },
            "session": session_provider.status.value if session_provider else None,
        }

        if not session_provider or not dashboard:
            health_status["status"] = "degraded"

        return health_status

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information.

        Returns:
            API information and available endpoints
        """
        return {
            "name": "Taskboard API",
            "version": VERSION,
            "description": "Personal task manager",
            "docs_url": "/docs",
            "health_check": "/healthz",
            "endpoints": {
                "auth": "/auth",
                "tasks": "/tasks",
                "notifications": "/notifications",
            },
        }

    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
    app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])

    logger.info("FastAPI application created and configured")

    return app


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
    )


# Create the app instance
app = create_app()
