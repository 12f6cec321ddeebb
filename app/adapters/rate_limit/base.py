"""Rate limiter interfaces.

The API depends on these abstractions (not the concrete implementations)
so storage can move to a shared store later with minimal changes.

Two limiters exist:
- Request limiters (``AbstractRateLimiter``) consume budget on every call
  and protect endpoints from bursts.
- Generation limiters (``AbstractGenerationLimiter``) gate video generations
  per client IP with a cooldown; checking and recording are separate steps.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


@dataclass(frozen=True)
class GenerationDecision:
    """Outcome of a cooldown check.

    Attributes:
        allowed: Whether a new generation may start.
        remaining_wait_minutes: Minutes left in the cooldown (>= 1) when
            not allowed, None otherwise.
    """

    allowed: bool
    remaining_wait_minutes: int | None = None


@dataclass(frozen=True)
class GenerationStats:
    """Per-IP generation usage."""

    generation_count: int
    last_generation_at: datetime | None


class AbstractRateLimiter(ABC):
    """Interface for request rate limiters."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Unique identifier (e.g., API key, IP address).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> int:
        """Drop state that can no longer affect a decision.

        Returns:
            Number of keys removed.
        """
        raise NotImplementedError


class AbstractGenerationLimiter(ABC):
    """Interface for per-IP generation cooldown limiters."""

    @abstractmethod
    def can_generate(self, ip: str, is_paid: bool = False) -> GenerationDecision:
        """Decide whether ``ip`` may start a generation. Never mutates state."""
        raise NotImplementedError

    @abstractmethod
    def record_generation(self, ip: str) -> None:
        """Register one accepted generation for ``ip``."""
        raise NotImplementedError

    @abstractmethod
    def get_stats(self, ip: str) -> GenerationStats:
        """Return usage for ``ip`` (zero/None when unknown)."""
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> int:
        """Remove entries older than the retention window.

        Returns:
            Number of entries removed.
        """
        raise NotImplementedError
