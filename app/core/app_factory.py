from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
the rate limiters owned by the app) so tests can build isolated instances.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api.routes import health_router, video_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_burst_limiter, build_generation_limiter, run_periodic_cleanup
from app.services.duration_service import DurationEstimator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run limiter cleanup in the background and release the video client on exit."""
    cleanup_task = asyncio.create_task(
        run_periodic_cleanup(
            [app.state.generation_limiter, app.state.burst_limiter],
            settings.app.cleanup_interval_seconds,
        )
    )
    logger.info(
        "app.started",
        extra={"cleanup_interval_s": settings.app.cleanup_interval_seconds},
    )
    try:
        yield
    finally:
        cleanup_task.cancel()
        try:
            with contextlib.suppress(asyncio.CancelledError):
                await cleanup_task
        finally:
            video_client = getattr(app.state, "video_client", None)
            if video_client is not None:
                await video_client.aclose()
            logger.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and state.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Make My Dog Talk API",
        description=(
            "Generation gateway for talking-dog videos. Accepts a dog photo and "
            "dialogue, picks a video length from the dialogue, enforces a per-IP "
            "cooldown between free generations (paid requests skip it) and starts "
            "the generation with the video provider. Requires X-API-Key."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.generation_limiter = build_generation_limiter(settings.app)
    app.state.burst_limiter = build_burst_limiter(settings.app)
    app.state.duration_estimator = DurationEstimator(
        words_per_minute=settings.duration.words_per_minute,
        buckets=settings.duration.bucket_values,
    )
    app.state.video_client = None

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(video_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
