"""Boundary with the AI model that proposes segments and fallback subtitles.

The model itself lives outside this package; these helpers define what it
must look like and turn its raw text answers into pipeline types.
"""

import json
import logging
import re
from pathlib import Path
from typing import Protocol

from viralclip.analyzers.segments import validate_segments
from viralclip.editors.srt import normalize_srt
from viralclip.errors import UnparsableOracleResponse
from viralclip.manifest import SegmentRules
from viralclip.models import MediaSegment

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```[\w-]*\s*$", re.MULTILINE)


class SegmentOracle(Protocol):
    def propose_segments(self, source_path: Path, duration: float) -> str:
        """Return a JSON array of {startTime, endTime, description} objects."""


class SubtitleOracle(Protocol):
    def transcribe(self, source_path: Path, start: float, end: float) -> str:
        """Return SRT-like text for [start, end] of the source, relative to start."""


def _strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def parse_segment_proposals(text: str) -> list[MediaSegment]:
    """Parse the oracle's JSON proposal list into segments (unvalidated)."""
    if not isinstance(text, str):
        raise UnparsableOracleResponse("Oracle returned no text")

    body = _strip_fences(text)
    try:
        data = json.loads(body)
    except ValueError as e:
        raise UnparsableOracleResponse("Oracle response is not valid JSON", body) from e

    if not isinstance(data, list):
        raise UnparsableOracleResponse("Oracle response is not a JSON array", body)

    proposals: list[MediaSegment] = []
    for item in data:
        if not isinstance(item, dict):
            raise UnparsableOracleResponse("Oracle proposal is not an object", str(item))
        try:
            start = float(item["startTime"])
            end = float(item["endTime"])
        except (KeyError, TypeError, ValueError) as e:
            raise UnparsableOracleResponse(
                "Oracle proposal lacks numeric startTime/endTime", str(item)
            ) from e
        proposals.append(
            MediaSegment(start=start, end=end, reason=str(item.get("description", "")))
        )
    return proposals


def propose_segments(
    oracle: SegmentOracle,
    source_path: Path,
    duration: float,
    rules: SegmentRules | None = None,
) -> list[MediaSegment]:
    """Ask the oracle for proposals and return validated segments.

    An unparsable answer falls back to uniform tiling rather than aborting.
    """
    try:
        proposals = parse_segment_proposals(oracle.propose_segments(source_path, duration))
    except UnparsableOracleResponse as e:
        logger.warning("Ignoring oracle proposals: %s", e)
        proposals = []
    return validate_segments(proposals, duration, rules)


def parse_subtitle_response(text: str) -> str:
    """Normalize an oracle SRT answer; empty string means "no subtitles"."""
    if not isinstance(text, str):
        raise UnparsableOracleResponse("Oracle returned no subtitle text")
    return normalize_srt(text)
