"""Unit tests for the in-memory burst rate limiter adapter."""

from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 0


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True

    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    # Window [960, 1020) resets in 20 seconds
    assert blocked.retry_after_seconds == 20
    assert blocked.reset_at == 1020


def test_resets_on_new_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is False

    clock.return_value = 1010.0
    assert limiter.consume("k").allowed is True


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.consume("ip:1.1.1.1").allowed is True
    assert limiter.consume("ip:1.1.1.1").allowed is False

    assert limiter.consume("ip:2.2.2.2").allowed is True


def test_min_interval_blocks_rapid_requests() -> None:
    clock = Mock(return_value=7200.0)
    limiter = InMemoryFixedWindowRateLimiter(
        limit=10, window_seconds=3600, min_interval_seconds=30, clock=clock
    )

    assert limiter.consume("k").allowed is True

    clock.return_value = 7210.0
    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 20
    # Blocked requests do not use up the window budget
    assert blocked.remaining == 9

    clock.return_value = 7230.0
    assert limiter.consume("k").allowed is True


def test_min_interval_spans_window_boundary() -> None:
    clock = Mock(return_value=3590.0)
    limiter = InMemoryFixedWindowRateLimiter(
        limit=10, window_seconds=3600, min_interval_seconds=30, clock=clock
    )
    assert limiter.consume("k").allowed is True

    clock.return_value = 3600.0
    assert limiter.consume("k").allowed is False


def test_cleanup_drops_finished_windows() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=60, clock=clock)
    limiter.consume("a")
    limiter.consume("b")

    assert limiter.cleanup() == 0

    clock.return_value = 1100.0
    limiter.consume("b")
    assert limiter.cleanup() == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": 60, "min_interval_seconds": -1},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        limiter.consume("")

    with pytest.raises(ValueError):
        limiter.consume("k", cost=0)
