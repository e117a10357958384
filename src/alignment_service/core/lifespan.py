"""Application lifecycle management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from alignment_service.config import get_settings
from alignment_service.core.state import init_app_state
from alignment_service.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    # === STARTUP ===
    settings = get_settings()

    setup_logging(settings.server.log_level, settings.service.name)
    logger = get_logger()

    state = init_app_state(max_events=settings.sessions.max_events)

    logger.info(
        "Service starting",
        extra={
            "service": settings.service.name,
            "version": settings.service.version,
            "host": settings.server.host,
            "port": settings.server.port,
        },
    )
    logger.info(
        "Algorithm configuration",
        extra={
            "orb_max_features": settings.orb.max_features,
            "cross_check": settings.matching.cross_check,
            "ransac_iterations": settings.ransac.iterations,
            "inlier_threshold": settings.ransac.inlier_threshold,
            "min_pairs": settings.estimation.min_pairs,
        },
    )

    yield

    # === SHUTDOWN ===
    logger.info(
        "Service shutting down",
        extra={
            "uptime_seconds": state.uptime_seconds,
            "uptime": state.uptime_formatted,
            "open_sessions": len(state.sessions),
        },
    )
