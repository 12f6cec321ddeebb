"""Print the duration analysis for a piece of dialogue.

Shows the word count, the estimate at the configured pace, the video length
the service would request, and how long the dialogue takes at other paces.

Usage:
    python -m app.scripts.analyze_duration "I don't need much... just your hand."
    echo "hello there" | python -m app.scripts.analyze_duration -
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from app.core.config import parse_buckets, settings
from app.services.duration_service import DurationEstimator

COMPARISON_PACES: tuple[tuple[str, float], ...] = (
    ("Fast", 170.0),
    ("Normal", 140.0),
    ("Slow", 120.0),
)


def render_report(dialogue: str, estimator: DurationEstimator) -> str:
    estimate = estimator.estimate(dialogue)
    rule = "=" * 60
    lines = [
        rule,
        "DURATION ANALYSIS",
        rule,
        f'Dialogue: "{dialogue.strip()}"',
        f"Word count: {estimate.word_count} words",
        f"Words per minute: {estimator.words_per_minute:g} WPM",
        f"Dialogue duration: {estimate.estimated_seconds:.2f} seconds",
        f"Permitted lengths: {', '.join(str(b) for b in estimator.buckets)} seconds",
        f"Final duration: {estimate.duration_seconds} seconds",
        "",
        "Time needed at different paces:",
    ]
    for name, wpm in COMPARISON_PACES:
        seconds = estimate.word_count * 60 / wpm
        lines.append(f"  {name} ({wpm:g} WPM): {seconds:.2f} seconds")

    lines.append("")
    if estimate.truncated:
        shortfall = estimate.estimated_seconds - estimate.duration_seconds
        lines.append(
            f"WARNING: dialogue needs {estimate.estimated_seconds:.2f}s but the longest video is "
            f"{estimate.duration_seconds}s; about {shortfall:.2f}s will be cut off."
        )
    else:
        spare = estimate.duration_seconds - estimate.estimated_seconds
        lines.append(
            f"OK: {estimate.estimated_seconds:.2f}s of dialogue fits in a "
            f"{estimate.duration_seconds}s video ({spare:.2f}s spare)."
        )
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("dialogue", help="Dialogue text, or '-' to read stdin")
    parser.add_argument(
        "--wpm",
        type=float,
        default=settings.duration.words_per_minute,
        help="Assumed speaking pace (default from DURATION_WORDS_PER_MINUTE)",
    )
    parser.add_argument(
        "--buckets",
        default=settings.duration.buckets,
        help="Comma-separated permitted lengths in seconds (default from DURATION_BUCKETS)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    dialogue = sys.stdin.read() if args.dialogue == "-" else args.dialogue

    try:
        buckets = parse_buckets(args.buckets)
        estimator = DurationEstimator(words_per_minute=args.wpm, buckets=buckets)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(render_report(dialogue, estimator))
    return 0


if __name__ == "__main__":
    sys.exit(main())
