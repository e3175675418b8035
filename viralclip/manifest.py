"""JSON manifest schema — the contract between CLI/API and engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from viralclip.models import MediaSegment, Orientation

DEFAULT_STRATEGIES = ["words", "oracle_srt"]


@dataclass
class SegmentRules:
    """Duration bounds for AI proposals and the uniform fallback window."""

    min_duration: float = 60.0
    max_duration: float = 120.0
    window: float = 90.0


@dataclass
class SubtitleConfig:
    """Which transcript strategies to try, in order, and cleanup policy."""

    enabled: bool = True
    strategies: list[str] = field(default_factory=lambda: list(DEFAULT_STRATEGIES))
    keep_files: bool = False


@dataclass
class Manifest:
    """Top-level clip job manifest."""

    input: Path
    output_dir: Path
    version: str = "1"
    orientation: Orientation = Orientation.VERTICAL
    language: str = "pt"
    segments: list[MediaSegment] = field(default_factory=list)
    segment_rules: SegmentRules = field(default_factory=SegmentRules)
    subtitles: SubtitleConfig = field(default_factory=SubtitleConfig)


def parse_segment(raw: dict) -> MediaSegment:
    # Accept both the manifest spelling and the oracle's camelCase keys
    start = raw.get("start", raw.get("startTime"))
    end = raw.get("end", raw.get("endTime"))
    if start is None or end is None:
        raise ValueError("Each segment needs 'start' and 'end'")
    return MediaSegment(
        start=float(start),
        end=float(end),
        reason=str(raw.get("reason", raw.get("description", ""))),
    )


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "input" not in data or "output_dir" not in data:
        raise ValueError("Manifest must contain 'input' and 'output_dir' fields")

    rules = SegmentRules(**data["segment_rules"]) if "segment_rules" in data else SegmentRules()
    subtitles = SubtitleConfig(**data["subtitles"]) if "subtitles" in data else SubtitleConfig()

    return Manifest(
        version=data.get("version", "1"),
        input=Path(data["input"]),
        output_dir=Path(data["output_dir"]),
        orientation=Orientation.parse(data.get("orientation", "vertical")),
        language=data.get("language", "pt"),
        segments=[parse_segment(s) for s in data.get("segments", [])],
        segment_rules=rules,
        subtitles=subtitles,
    )
