"""Application lifecycle management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from robust_matcher.config import get_settings
from robust_matcher.core.state import init_app_state
from robust_matcher.logging import get_logger, setup_logging

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

    state = init_app_state()

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
            "detector": settings.features.detector,
            "max_features": settings.features.max_features,
            "ratio_threshold": settings.matching.ratio_threshold,
            "epipolar_distance": settings.ransac.distance,
            "ransac_confidence": settings.ransac.confidence,
            "refine_fundamental": settings.ransac.refine_fundamental,
        },
    )

    logger.info("Service ready to accept requests")

    yield

    # === SHUTDOWN ===
    logger.info(
        "Service shutting down",
        extra={
            "uptime_seconds": state.uptime_seconds,
            "uptime": state.uptime_formatted,
            "pipeline_runs": state.pipeline_runs,
            "pipeline_failures": state.pipeline_failures,
        },
    )
