"""Per-key burst limiter for the generate endpoint.

Each key gets a budget of requests per fixed window (10 per hour by default)
and, optionally, a minimum gap between two allowed requests (30 seconds by
default). State lives in this process only, so every worker counts on its own.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _BurstWindow:
    window_start: int
    count: int
    last_request_at: float | None = None


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Fixed-window budget plus minimum interval, keyed by caller.

    Args:
        limit: Requests allowed per window.
        window_seconds: Window length.
        min_interval_seconds: Required gap between allowed requests for one
            key; 0 turns the gap check off.
        clock: UNIX time source, replaceable in tests.

    Raises:
        ValueError: On a non-positive limit or window, or a negative interval.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        min_interval_seconds: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._windows: dict[str, _BurstWindow] = {}

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def _window_bounds(self, now: float) -> tuple[int, int]:
        start = int(now // self._window_seconds) * self._window_seconds
        return start, start + self._window_seconds

    def _window_for(self, key: str, window_start: int) -> _BurstWindow:
        # last_request_at is kept across windows so the gap check spans the boundary
        window = self._windows.get(key)
        if window is None:
            window = _BurstWindow(window_start=window_start, count=0)
            self._windows[key] = window
        elif window.window_start != window_start:
            window.window_start = window_start
            window.count = 0
        return window

    def _result(self, *, allowed: bool, remaining: int, reset_at: int, retry_after: float | None = None) -> RateLimitResult:
        return RateLimitResult(
            allowed=allowed,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(reset_at),
            retry_after_seconds=None if retry_after is None else max(1, int(math.ceil(retry_after))),
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Spend ``cost`` units of the key's budget if both checks pass.

        The interval is checked before the budget. A refused request leaves
        the state untouched.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        window_start, reset_at = self._window_bounds(now)

        with self._lock:
            window = self._window_for(key, window_start)
            remaining = max(0, self._limit - window.count)

            if self._min_interval_seconds and window.last_request_at is not None:
                elapsed = now - window.last_request_at
                if elapsed < self._min_interval_seconds:
                    return self._result(
                        allowed=False,
                        remaining=remaining,
                        reset_at=reset_at,
                        retry_after=self._min_interval_seconds - elapsed,
                    )

            if window.count + cost > self._limit:
                return self._result(
                    allowed=False,
                    remaining=remaining,
                    reset_at=reset_at,
                    retry_after=reset_at - now,
                )

            window.count += cost
            window.last_request_at = now
            return self._result(
                allowed=True,
                remaining=max(0, self._limit - window.count),
                reset_at=reset_at,
            )

    def cleanup(self) -> int:
        """Drop keys whose window has ended and whose interval has elapsed."""
        now = self._clock()
        current_window, _ = self._window_bounds(now)
        with self._lock:
            stale = [
                key
                for key, window in self._windows.items()
                if window.window_start < current_window
                and (
                    window.last_request_at is None
                    or now - window.last_request_at >= self._min_interval_seconds
                )
            ]
            for key in stale:
                del self._windows[key]
        return len(stale)
