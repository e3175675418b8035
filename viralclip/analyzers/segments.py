"""Segment validation — the gate between AI proposals and the cutter.

Downstream stages assume every segment they receive is in range and
correctly sized. Proposals that break the rules are dropped; when nothing
survives, the source is tiled into fixed windows instead.
"""

import logging
from pathlib import Path

from viralclip import ffutil
from viralclip.errors import InvalidRange
from viralclip.manifest import SegmentRules
from viralclip.models import MediaSegment

logger = logging.getLogger(__name__)


def is_valid(segment: MediaSegment, source_duration: float, rules: SegmentRules) -> bool:
    return (
        segment.start >= 0
        and segment.end > segment.start
        and rules.min_duration <= segment.duration <= rules.max_duration
        and segment.end <= source_duration
    )


def uniform_segments(
    source_duration: float, rules: SegmentRules | None = None
) -> list[MediaSegment]:
    """Tile the source with fixed windows from t=0.

    Each window is clipped to the source; a trailing window shorter than the
    minimum duration is dropped.
    """
    rules = rules or SegmentRules()
    segments: list[MediaSegment] = []
    start = 0.0
    n = 1
    while start < source_duration:
        end = min(start + rules.window, source_duration)
        if end - start >= rules.min_duration:
            segments.append(
                MediaSegment(start=start, end=end, reason=f"Segment {n} of source")
            )
            n += 1
        start += rules.window
    return segments


def validate_segments(
    proposals: list[MediaSegment],
    source_duration: float,
    rules: SegmentRules | None = None,
) -> list[MediaSegment]:
    """Keep well-formed proposals, or fall back to uniform tiling.

    Never raises for "no good proposals"; an empty list is only returned
    when the source is shorter than the minimum segment duration.
    """
    rules = rules or SegmentRules()
    kept = [p for p in proposals if is_valid(p, source_duration, rules)]

    dropped = len(proposals) - len(kept)
    if dropped:
        logger.info("Discarded %d of %d proposed segments", dropped, len(proposals))

    if kept:
        return kept

    fallback = uniform_segments(source_duration, rules)
    logger.warning(
        "No valid proposals for %.1fs source; using %d uniform segments",
        source_duration,
        len(fallback),
    )
    return fallback


def revise_segment(
    segment: MediaSegment,
    start: float | None = None,
    end: float | None = None,
    reason: str | None = None,
    source_duration: float | None = None,
) -> MediaSegment:
    """Return a new segment with the edited fields; the original is untouched.

    When *source_duration* is known the edited end may not run past it.
    """
    new_start = segment.start if start is None else float(start)
    new_end = segment.end if end is None else float(end)
    if new_start < 0 or new_end <= new_start:
        raise InvalidRange(
            f"Invalid cut times: start={new_start}, end={new_end}"
        )
    if source_duration is not None and new_end > source_duration:
        raise InvalidRange(
            f"Cut end {new_end} is past the end of the video ({source_duration:.2f}s)"
        )
    return MediaSegment(
        start=new_start,
        end=new_end,
        reason=segment.reason if reason is None else reason,
    )


def plan_segments(
    source_path: Path,
    proposals: list[MediaSegment],
    rules: SegmentRules | None = None,
) -> tuple[float, list[MediaSegment]]:
    """Probe the source and validate *proposals* against its duration."""
    duration = ffutil.probe_duration(source_path)
    return duration, validate_segments(proposals, duration, rules)
