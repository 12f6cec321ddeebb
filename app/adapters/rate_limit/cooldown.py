"""In-memory per-IP generation cooldown limiter.

Notes:
- Per-process only: every worker keeps its own table, and the table is lost
  on restart.
- Thread-safe: a lock guards the table for lookups, records and cleanup.
- ``can_generate`` and ``record_generation`` are separate calls. Two requests
  from the same IP can both pass the check before either records, admitting
  at most one extra generation per race.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractGenerationLimiter,
    GenerationDecision,
    GenerationStats,
)

SECONDS_PER_HOUR = 3600


@dataclass
class RateLimitEntry:
    last_generation_at: float
    generation_count: int


class InMemoryCooldownLimiter(AbstractGenerationLimiter):
    """Gate video generations by client IP with a fixed cooldown.

    Paid requests bypass the cooldown without touching state. First-time IPs
    are always allowed. Entries are created only by ``record_generation`` and
    purged by ``cleanup`` once older than the retention window.
    """

    def __init__(
        self,
        *,
        cooldown_seconds: float = 3 * SECONDS_PER_HOUR,
        retention_seconds: float = 24 * SECONDS_PER_HOUR,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cooldown limiter.

        Args:
            cooldown_seconds: Minimum time between two unpaid generations.
            retention_seconds: Age after which an entry is purged by cleanup.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If cooldown_seconds or retention_seconds are not positive.
        """
        if cooldown_seconds <= 0:
            raise ValueError("cooldown_seconds must be > 0")
        if retention_seconds <= 0:
            raise ValueError("retention_seconds must be > 0")

        self._cooldown_seconds = cooldown_seconds
        self._retention_seconds = retention_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, RateLimitEntry] = {}

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown_seconds

    @property
    def retention_seconds(self) -> float:
        return self._retention_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def can_generate(self, ip: str, is_paid: bool = False) -> GenerationDecision:
        """Check whether ``ip`` may start a generation now.

        Args:
            ip: Client IP address, used as an opaque key.
            is_paid: Whether the request was paid for; payment skips the line.

        Returns:
            GenerationDecision. When refused, ``remaining_wait_minutes`` is the
            remaining cooldown rounded up to whole minutes (at least 1).
        """
        if is_paid:
            return GenerationDecision(allowed=True)

        with self._lock:
            entry = self._entries.get(ip)
            if entry is None:
                return GenerationDecision(allowed=True)
            last_generation_at = entry.last_generation_at

        elapsed = self._clock() - last_generation_at
        if elapsed >= self._cooldown_seconds:
            return GenerationDecision(allowed=True)

        remaining = self._cooldown_seconds - elapsed
        return GenerationDecision(
            allowed=False,
            remaining_wait_minutes=max(1, math.ceil(remaining / 60)),
        )

    def record_generation(self, ip: str) -> None:
        """Register an accepted generation for ``ip``.

        Called once per generation that actually started, paid ones included.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(ip)
            if entry is None:
                self._entries[ip] = RateLimitEntry(last_generation_at=now, generation_count=1)
                return
            entry.last_generation_at = now
            entry.generation_count += 1

    def get_stats(self, ip: str) -> GenerationStats:
        with self._lock:
            entry = self._entries.get(ip)
            if entry is None:
                return GenerationStats(generation_count=0, last_generation_at=None)
            return GenerationStats(
                generation_count=entry.generation_count,
                last_generation_at=datetime.fromtimestamp(entry.last_generation_at, tz=timezone.utc),
            )

    def cleanup(self) -> int:
        """Remove entries whose last generation is older than the retention window.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            stale = [
                ip
                for ip, entry in self._entries.items()
                if now - entry.last_generation_at > self._retention_seconds
            ]
            for ip in stale:
                del self._entries[ip]
        return len(stale)
