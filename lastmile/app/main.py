"""
FastAPI Application Entry Point.

This is the main application file for the Last-Mile Delivery API.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from lastmile.app.core.config import settings
from lastmile.app.api.v1.router import router as api_v1_router
from lastmile.app.db.session import engine, Base
from lastmile.app.core.observability import ObservabilityMiddleware, configure_logging
from lastmile.app.core.redis_client import ping_redis
from lastmile.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from lastmile.app.models.driver import Driver
from lastmile.app.models.route import Route
from lastmile.app.models.delivery import Delivery
from lastmile.app.models.shift import Shift, ShiftBreak
from lastmile.app.models.report import Report
from lastmile.app.models.audit_log import AuditLog

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Routes, deliveries, shifts and reports for last-mile drivers and dispatch",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")

# Locally stored proof-of-delivery and report photos (skipped when served by a CDN)
if settings.photo_public_base_url.startswith("/"):
    app.mount(
        settings.photo_public_base_url,
        StaticFiles(directory=settings.photo_storage_dir, check_dir=False),
        name="media",
    )


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Last-Mile Delivery API",
        "docs": "/docs",
        "health": "/health",
    }
