"""Shared data types used across viralclip."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from viralclip.errors import InvalidInput


class Orientation(str, Enum):
    """Output aspect-ratio target."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"

    @classmethod
    def parse(cls, value: "str | Orientation") -> "Orientation":
        try:
            return cls(value)
        except ValueError:
            raise InvalidInput(
                f"Invalid format {value!r}. Use 'horizontal' or 'vertical'"
            ) from None


@dataclass(frozen=True)
class MediaSegment:
    """A time range of the source video intended to become one clip."""

    start: float
    end: float
    reason: str = ""

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class WordTiming:
    """A single spoken word with its start/end in seconds."""

    start: float
    end: float
    text: str


@dataclass
class SubtitleBlock:
    """One normalized SRT block."""

    index: int
    start: float
    end: float
    text: str


@dataclass
class AssEvent:
    """A parsed ``Dialogue:`` line from an ASS script."""

    start: float
    end: float
    text: str


@dataclass
class ProcessedArtifact:
    """Final output of one pipeline run for one segment."""

    output_path: Path
    orientation: Orientation
    subtitles: str | None = None
    subtitle_source: str = "none"
    segment: MediaSegment | None = None


@dataclass
class SynthResult:
    audio_path: Path
    duration: float


@dataclass
class NarrationResult:
    output_path: Path
    audio_path: Path
    duration: float
