"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start
with in-memory limiters and later migrate to Redis or another shared store
without changing the API layer.
"""

from app.adapters.rate_limit.base import (
    AbstractGenerationLimiter,
    AbstractRateLimiter,
    GenerationDecision,
    GenerationStats,
    RateLimitResult,
)
from app.adapters.rate_limit.cooldown import InMemoryCooldownLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractGenerationLimiter",
    "AbstractRateLimiter",
    "GenerationDecision",
    "GenerationStats",
    "InMemoryCooldownLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
]
