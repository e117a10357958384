"""
FastAPI application factory.
"""

from __future__ import annotations

from fastapi import FastAPI

from alignment_service.config import get_settings
from alignment_service.core.exceptions import register_exception_handlers
from alignment_service.core.lifespan import lifespan
from alignment_service.routers import alignment, detection, health, info, sessions


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance with all routers registered
    """
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.service.name} Service",
        version=settings.service.version,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Operations"])
    app.include_router(info.router, tags=["Operations"])
    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(detection.router, tags=["Detection"])
    app.include_router(alignment.router, tags=["Alignment"])

    return app
