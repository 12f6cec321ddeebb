"""Dialogue duration heuristic.

Maps the literal dialogue a dog should speak to one of the permitted video
lengths. The pace is a constant approximation: pauses, emphasis and
non-English tokenization are not modeled, and dialogue longer than the
largest bucket is accepted and will be cut off in the video.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_WORDS_PER_MINUTE = 140.0
DEFAULT_BUCKETS: tuple[int, ...] = (4, 6, 8)


@dataclass(frozen=True)
class DurationEstimate:
    """Result of estimating how long a dialogue needs.

    Attributes:
        word_count: Whitespace-separated words in the dialogue.
        estimated_seconds: Speaking time at the configured pace.
        duration_seconds: Chosen permitted video length.
        truncated: True when even the largest bucket is shorter than the estimate.
    """

    word_count: int
    estimated_seconds: float
    duration_seconds: int
    truncated: bool


def count_words(text: str) -> int:
    """Count whitespace-separated words; ellipses and punctuation stay attached."""
    return len(text.split())


@dataclass(frozen=True)
class DurationEstimator:
    """Pick the shortest permitted video length that fits a dialogue.

    Args:
        words_per_minute: Assumed speaking pace.
        buckets: Permitted video lengths in seconds, any order.

    Raises:
        ValueError: If the pace is not positive or the bucket set is empty
            or holds non-positive values.
    """

    words_per_minute: float = DEFAULT_WORDS_PER_MINUTE
    buckets: tuple[int, ...] = field(default=DEFAULT_BUCKETS)

    def __post_init__(self) -> None:
        if self.words_per_minute <= 0:
            raise ValueError("words_per_minute must be > 0")
        ordered = tuple(sorted(set(self.buckets)))
        if not ordered:
            raise ValueError("at least one duration bucket is required")
        if ordered[0] <= 0:
            raise ValueError("duration buckets must be positive")
        object.__setattr__(self, "buckets", ordered)

    @classmethod
    def from_values(cls, words_per_minute: float, buckets: Iterable[int]) -> "DurationEstimator":
        return cls(words_per_minute=words_per_minute, buckets=tuple(buckets))

    def estimate_seconds(self, word_count: int) -> float:
        return word_count * 60 / self.words_per_minute

    def choose_bucket(self, estimated_seconds: float) -> int:
        """Smallest bucket >= the estimate, else the largest bucket."""
        for bucket in self.buckets:
            if bucket >= estimated_seconds:
                return bucket
        return self.buckets[-1]

    def estimate(self, dialogue: str) -> DurationEstimate:
        """Estimate the video length needed for ``dialogue``.

        Empty or whitespace-only dialogue maps to the smallest bucket.
        """
        word_count = count_words(dialogue or "")
        estimated = self.estimate_seconds(word_count)
        duration = self.choose_bucket(estimated)
        truncated = estimated > duration

        if truncated:
            logger.warning(
                "duration.truncated",
                extra={
                    "word_count": word_count,
                    "estimated_s": round(estimated, 2),
                    "duration_s": duration,
                },
            )
        else:
            logger.debug(
                "duration.estimated",
                extra={
                    "word_count": word_count,
                    "estimated_s": round(estimated, 2),
                    "duration_s": duration,
                },
            )

        return DurationEstimate(
            word_count=word_count,
            estimated_seconds=estimated,
            duration_seconds=duration,
            truncated=truncated,
        )


def estimate_duration(
    dialogue: str,
    *,
    words_per_minute: float = DEFAULT_WORDS_PER_MINUTE,
    buckets: Iterable[int] = DEFAULT_BUCKETS,
) -> int:
    """Shortcut returning only the chosen video length in seconds.

    Examples:
        >>> estimate_duration("hello there")
        4
        >>> estimate_duration("word " * 100)
        8
    """
    estimator = DurationEstimator.from_values(words_per_minute, buckets)
    return estimator.estimate(dialogue).duration_seconds
