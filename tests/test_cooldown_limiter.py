"""Unit tests for the per-IP generation cooldown limiter."""

import threading
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.cooldown import InMemoryCooldownLimiter

HOUR = 3600.0
MINUTE = 60.0
START = 1_700_000_000.0


@pytest.fixture
def limiter(clock: Mock) -> InMemoryCooldownLimiter:
    return InMemoryCooldownLimiter(
        cooldown_seconds=3 * HOUR,
        retention_seconds=24 * HOUR,
        clock=clock,
    )


class TestCanGenerate:
    def test_first_time_ip_is_allowed(self, limiter: InMemoryCooldownLimiter) -> None:
        decision = limiter.can_generate("1.2.3.4", False)

        assert decision.allowed is True
        assert decision.remaining_wait_minutes is None

    def test_empty_ip_is_an_ordinary_key(self, limiter: InMemoryCooldownLimiter) -> None:
        assert limiter.can_generate("", False).allowed is True

        limiter.record_generation("")

        assert limiter.can_generate("", False).allowed is False
        assert limiter.get_stats("").generation_count == 1

    def test_paid_is_always_allowed(self, limiter: InMemoryCooldownLimiter) -> None:
        limiter.record_generation("1.2.3.4")

        decision = limiter.can_generate("1.2.3.4", True)

        assert decision.allowed is True
        assert decision.remaining_wait_minutes is None

    def test_paid_check_does_not_touch_state(self, limiter: InMemoryCooldownLimiter) -> None:
        limiter.can_generate("5.6.7.8", True)

        assert len(limiter) == 0
        assert limiter.get_stats("5.6.7.8").generation_count == 0

    def test_check_is_read_only(self, limiter: InMemoryCooldownLimiter) -> None:
        for _ in range(3):
            limiter.can_generate("1.2.3.4", False)

        assert len(limiter) == 0

    @pytest.mark.parametrize("delta", [0.0, 1.0, MINUTE, 2 * HOUR, 3 * HOUR - 0.001])
    def test_blocked_inside_cooldown(
        self, limiter: InMemoryCooldownLimiter, clock: Mock, delta: float
    ) -> None:
        limiter.record_generation("1.2.3.4")
        clock.return_value = START + delta

        decision = limiter.can_generate("1.2.3.4", False)

        assert decision.allowed is False
        assert decision.remaining_wait_minutes is not None
        assert decision.remaining_wait_minutes >= 1

    @pytest.mark.parametrize("delta", [3 * HOUR, 3 * HOUR + 1, 10 * HOUR])
    def test_allowed_once_cooldown_elapsed(
        self, limiter: InMemoryCooldownLimiter, clock: Mock, delta: float
    ) -> None:
        limiter.record_generation("1.2.3.4")
        clock.return_value = START + delta

        assert limiter.can_generate("1.2.3.4", False).allowed is True

    @pytest.mark.parametrize(
        ("delta", "expected_minutes"),
        [
            (0.0, 180),
            (30.0, 180),
            (MINUTE, 179),
            (2 * HOUR, 60),
            (2 * HOUR + 59 * MINUTE, 1),
            (3 * HOUR - 1, 1),
        ],
    )
    def test_remaining_minutes_round_up(
        self,
        limiter: InMemoryCooldownLimiter,
        clock: Mock,
        delta: float,
        expected_minutes: int,
    ) -> None:
        limiter.record_generation("1.2.3.4")
        clock.return_value = START + delta

        assert limiter.can_generate("1.2.3.4", False).remaining_wait_minutes == expected_minutes

    def test_three_hour_example(self, limiter: InMemoryCooldownLimiter, clock: Mock) -> None:
        limiter.record_generation("1.2.3.4")

        clock.return_value = START + 2 * HOUR + 59 * MINUTE
        decision = limiter.can_generate("1.2.3.4", False)
        assert (decision.allowed, decision.remaining_wait_minutes) == (False, 1)

        clock.return_value = START + 3 * HOUR
        assert limiter.can_generate("1.2.3.4", False).allowed is True

    def test_ips_are_isolated(self, limiter: InMemoryCooldownLimiter) -> None:
        limiter.record_generation("1.1.1.1")

        assert limiter.can_generate("1.1.1.1", False).allowed is False
        assert limiter.can_generate("2.2.2.2", False).allowed is True


class TestRecordAndStats:
    def test_stats_for_unknown_ip(self, limiter: InMemoryCooldownLimiter) -> None:
        stats = limiter.get_stats("9.9.9.9")

        assert stats.generation_count == 0
        assert stats.last_generation_at is None

    def test_record_is_cumulative(self, limiter: InMemoryCooldownLimiter, clock: Mock) -> None:
        for i in range(5):
            clock.return_value = START + i * MINUTE
            limiter.record_generation("1.2.3.4")

        stats = limiter.get_stats("1.2.3.4")
        assert stats.generation_count == 5
        assert stats.last_generation_at == datetime.fromtimestamp(START + 4 * MINUTE, tz=timezone.utc)

    def test_record_restarts_cooldown(self, limiter: InMemoryCooldownLimiter, clock: Mock) -> None:
        limiter.record_generation("1.2.3.4")
        clock.return_value = START + 2 * HOUR
        # A paid generation still moves the timestamp forward
        limiter.record_generation("1.2.3.4")

        clock.return_value = START + 3 * HOUR
        decision = limiter.can_generate("1.2.3.4", False)

        assert decision.allowed is False
        assert decision.remaining_wait_minutes == 120

    def test_concurrent_records_are_all_counted(self) -> None:
        limiter = InMemoryCooldownLimiter()

        def _record() -> None:
            for _ in range(100):
                limiter.record_generation("1.2.3.4")

        threads = [threading.Thread(target=_record) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert limiter.get_stats("1.2.3.4").generation_count == 800


class TestCleanup:
    def test_removes_only_strictly_older_entries(
        self, limiter: InMemoryCooldownLimiter, clock: Mock
    ) -> None:
        clock.return_value = START
        limiter.record_generation("old")
        clock.return_value = START + 1
        limiter.record_generation("boundary")
        clock.return_value = START + 10 * HOUR
        limiter.record_generation("fresh")
        limiter.record_generation("fresh")

        clock.return_value = START + 1 + 24 * HOUR
        removed = limiter.cleanup()

        assert removed == 1
        assert limiter.get_stats("old").generation_count == 0
        assert limiter.get_stats("boundary").generation_count == 1
        fresh = limiter.get_stats("fresh")
        assert fresh.generation_count == 2
        assert fresh.last_generation_at == datetime.fromtimestamp(START + 10 * HOUR, tz=timezone.utc)

    def test_cleanup_is_idempotent(self, limiter: InMemoryCooldownLimiter, clock: Mock) -> None:
        limiter.record_generation("a")
        clock.return_value = START + 25 * HOUR

        assert limiter.cleanup() == 1
        assert limiter.cleanup() == 0
        assert len(limiter) == 0

    def test_purged_ip_is_treated_as_first_time(
        self, limiter: InMemoryCooldownLimiter, clock: Mock
    ) -> None:
        limiter.record_generation("a")
        clock.return_value = START + 25 * HOUR
        limiter.cleanup()

        assert limiter.can_generate("a", False).allowed is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"cooldown_seconds": 0},
        {"cooldown_seconds": -1},
        {"retention_seconds": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryCooldownLimiter(**kwargs)


def test_defaults_match_product_policy() -> None:
    limiter = InMemoryCooldownLimiter()

    assert limiter.cooldown_seconds == 3 * HOUR
    assert limiter.retention_seconds == 24 * HOUR
