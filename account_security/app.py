"""
Account Security Service - Main FastAPI Application.

Exposes the login attempt governor and the form sanitization pipeline
to the dashboard's authentication flow and form clients.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .domain.exceptions import (AccountLockedException,
                                AccountSecurityException,
                                FieldValidationException)
from .logging_config import get_logger, setup_logging
from .metrics import metrics_endpoint
from .routers import forms_router, health_router, login_attempts_router

# Setup logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    service_name="account-security-service",
    json_logs=settings.LOG_JSON,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events for the application.
    """
    logger.info(
        "Starting Account Security Service",
        service=settings.APP_NAME,
        debug=settings.DEBUG,
        in_memory_store=settings.USE_IN_MEMORY_STORE,
    )
    if not settings.USE_IN_MEMORY_STORE and not settings.supabase_configured:
        logger.warning("Supabase credentials not configured; login checks will fail open")

    yield

    logger.info("Shutting down Account Security Service")


def create_app() -> FastAPI:
    """Build the FastAPI application with routers and exception handlers."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Login attempt governance and form input sanitization",
        version=__version__,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.include_router(health_router)
    app.include_router(login_attempts_router)
    app.include_router(forms_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint."""
        return await metrics_endpoint()

    @app.exception_handler(AccountLockedException)
    async def account_locked_handler(request: Request, exc: AccountLockedException):
        headers = {}
        if exc.retry_after_seconds:
            headers["Retry-After"] = str(exc.retry_after_seconds)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"success": False, "error": "account_locked", "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(FieldValidationException)
    async def field_validation_handler(request: Request, exc: FieldValidationException):
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": "validation_failed",
                "message": exc.message,
                "errors": exc.errors,
            },
        )

    @app.exception_handler(AccountSecurityException)
    async def domain_exception_handler(request: Request, exc: AccountSecurityException):
        logger.warning("Request failed", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "bad_request", "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "request_id": request.headers.get("X-Request-ID"),
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "account_security.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
