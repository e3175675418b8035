"""SRT parsing, rendering and repair of loosely formatted subtitle text."""

import logging
import re

from viralclip.models import SubtitleBlock

logger = logging.getLogger(__name__)

_TIME = r"\d{1,2}:\d{2}:\d{2},\d{3}"
RANGE_RE = re.compile(rf"({_TIME})\s*-->\s*({_TIME})")

_FENCE_RE = re.compile(r"^\s*```.*$", re.MULTILINE)
_ARROW_RE = re.compile(r"\s*(?:–|—|-+)>\s*")
_FRACTION_RE = re.compile(r"(?<!\d)(\d{1,2}:\d{2}:\d{2})[.,](\d{1,3})(?!\d)")
_BARE_TIME_RE = re.compile(r"(?<![\d:])(\d{1,2}:\d{2}:\d{2})(?![,.:\d])")


def format_srt_time(seconds: float) -> str:
    total_ms = int(round(max(seconds, 0.0) * 1000))
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def srt_timestamp_to_seconds(stamp: str) -> float:
    hms, ms = stamp.split(",")
    h, m, s = (int(p) for p in hms.split(":"))
    return h * 3600 + m * 60 + s + int(ms) / 1000


def _fix_range_line(line: str) -> str:
    line = _ARROW_RE.sub(" --> ", line)
    line = _FRACTION_RE.sub(lambda m: f"{m.group(1)},{m.group(2).ljust(3, '0')}", line)
    return _BARE_TIME_RE.sub(r"\1,000", line)


def _repair(raw: str) -> str:
    text = raw.replace("\r\n", "\n").replace("\r", "\n").strip()
    text = _FENCE_RE.sub("", text)

    lines = []
    for line in text.split("\n"):
        if _ARROW_RE.search(line) and re.search(r"\d:\d{2}", line):
            line = _fix_range_line(line)
        lines.append(line)
    return "\n".join(lines).strip()


def parse_srt(text: str) -> list[SubtitleBlock]:
    """Parse well-formed SRT into blocks.

    Leading index lines are ignored and blocks are renumbered from 1. Blocks
    without a time range, with empty text, or whose end is not after the
    start are dropped.
    """
    blocks: list[SubtitleBlock] = []
    for part in re.split(r"\n\s*\n", text.replace("\r\n", "\n")):
        lines = [ln for ln in part.strip().split("\n") if ln.strip()]
        if lines and lines[0].strip().isdigit():
            lines = lines[1:]

        range_idx = next((i for i, ln in enumerate(lines) if RANGE_RE.search(ln)), None)
        if range_idx is None:
            continue

        m = RANGE_RE.search(lines[range_idx])
        body = "\n".join(lines[range_idx + 1:]).strip()
        if not body:
            continue

        start = srt_timestamp_to_seconds(m.group(1))
        end = srt_timestamp_to_seconds(m.group(2))
        if end <= start:
            logger.debug("Dropping subtitle block with non-increasing range: %s", lines[range_idx])
            continue

        blocks.append(SubtitleBlock(index=len(blocks) + 1, start=start, end=end, text=body))
    return blocks


def render_srt(blocks: list[SubtitleBlock]) -> str:
    if not blocks:
        return ""
    out: list[str] = []
    for i, block in enumerate(blocks, 1):
        out.append(str(i))
        out.append(f"{format_srt_time(block.start)} --> {format_srt_time(block.end)}")
        out.append(block.text)
        out.append("")
    return "\n".join(out).strip() + "\n"


def normalize_srt(raw: str) -> str:
    """Repair AI or engine subtitle text into strict, reindexed SRT.

    Returns an empty string when no usable time range exists anywhere in the
    text; callers treat that as "skip burn-in", not as an error.
    """
    if not raw or not raw.strip():
        return ""

    text = _repair(raw)
    if not RANGE_RE.search(text):
        return ""

    return render_srt(parse_srt(text))
