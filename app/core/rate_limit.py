"""Rate limiting wiring for FastAPI routes.

This module connects the rate limiting adapters to the HTTP layer.

Two limiters live on ``app.state`` for the lifetime of the application:
- ``generation_limiter``: per-IP cooldown between unpaid video generations.
- ``burst_limiter``: fixed-window request limit on the generate endpoint.

Routes reach them through dependency functions, so tests can swap in
isolated instances. A background task purges stale entries periodically.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from fastapi import HTTPException, Request, status

from app.adapters.rate_limit.base import AbstractGenerationLimiter, AbstractRateLimiter
from app.adapters.rate_limit.cooldown import SECONDS_PER_HOUR, InMemoryCooldownLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import AppSettings, settings
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def build_generation_limiter(app_settings: AppSettings | None = None) -> InMemoryCooldownLimiter:
    cfg = app_settings or settings.app
    return InMemoryCooldownLimiter(
        cooldown_seconds=cfg.generation_cooldown_hours * SECONDS_PER_HOUR,
        retention_seconds=cfg.generation_retention_hours * SECONDS_PER_HOUR,
    )


def build_burst_limiter(app_settings: AppSettings | None = None) -> InMemoryFixedWindowRateLimiter:
    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        limit=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window_seconds,
        min_interval_seconds=cfg.rate_limit_min_interval_seconds,
    )


def get_client_ip(request: Request) -> str:
    """Resolve the end user's IP address for the current request.

    The web tier forwards the user's address in X-Forwarded-For; the first
    hop is used when forwarding is trusted. The value is an opaque key and is
    not validated.

    Args:
        request: FastAPI request.

    Returns:
        str: Client IP, or "unknown" when none is available.
    """

    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop

    return request.client.host if request.client else UNKNOWN_CLIENT


def get_generation_limiter(request: Request) -> AbstractGenerationLimiter:
    """FastAPI dependency returning the application's generation limiter."""

    return request.app.state.generation_limiter


def get_burst_limiter(request: Request) -> AbstractRateLimiter:
    """FastAPI dependency returning the application's burst limiter."""

    return request.app.state.burst_limiter


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing the burst limit per client IP.

    When enabled, consumes 1 unit from the client's budget. If the client
    exceeds the configured rate or the minimum interval, raises HTTP 429.

    Args:
        request: FastAPI request.

    Raises:
        HTTPException: 429 Too Many Requests when rate limit is exceeded.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_burst_limiter(request)
    key = f"ip:{get_client_ip(request)}"
    key_hash = hash_identifier(key)

    result = limiter.consume(key)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": settings.app.rate_limit_window_seconds,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Please wait {retry_after} seconds before generating another video",
        headers=headers or None,
    )


def cleanup_limiters(limiters: Iterable[AbstractGenerationLimiter | AbstractRateLimiter]) -> int:
    """Run cleanup on every limiter and return the total number of purged keys."""

    removed = 0
    for limiter in limiters:
        removed += limiter.cleanup()
    return removed


async def run_periodic_cleanup(
    limiters: Iterable[AbstractGenerationLimiter | AbstractRateLimiter],
    interval_seconds: float,
) -> None:
    """Purge stale limiter state every ``interval_seconds`` until cancelled.

    A failing pass is logged and the loop continues with the next one.
    """

    limiters = list(limiters)
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = cleanup_limiters(limiters)
        except Exception:
            logger.exception("rate_limit.cleanup_failed")
            continue
        logger.info("rate_limit.cleanup", extra={"removed": removed})
