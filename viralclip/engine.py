"""Orchestrator — runs the clip pipeline defined by a Manifest.

Per segment: cut -> subtitles -> burn-in. Subtitles come from the first
strategy in ``SubtitleConfig.strategies`` that yields usable text:

* ``words``       speech engine word timings -> karaoke ASS
* ``speech_srt``  speech engine SRT -> normalized SRT
* ``oracle_srt``  AI transcript -> normalized SRT

A strategy that is not configured or fails to transcribe passes control to
the next one; every other error propagates.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from viralclip import ffutil
from viralclip.analyzers.oracle import SubtitleOracle, parse_subtitle_response, propose_segments
from viralclip.analyzers.segments import validate_segments
from viralclip.analyzers.transcribe import extract_srt, extract_words
from viralclip.editors.ass import build_karaoke_ass, parse_ass_events
from viralclip.editors.burn import burn_in
from viralclip.editors.cut import cut
from viralclip.editors.srt import normalize_srt
from viralclip.errors import InvalidInput, SpeechEngineNotConfigured, TranscriptionFailed
from viralclip.manifest import Manifest, SubtitleConfig
from viralclip.models import MediaSegment, Orientation, ProcessedArtifact

logger = logging.getLogger(__name__)


class SubtitleSource(str, Enum):
    WORDS = "words"
    SPEECH_SRT = "speech_srt"
    ORACLE_SRT = "oracle_srt"
    NONE = "none"


@dataclass
class SubtitleResult:
    source: SubtitleSource
    text: str = ""


@dataclass
class EngineResult:
    source_duration: float = 0.0
    segments: list[MediaSegment] = field(default_factory=list)
    artifacts: list[ProcessedArtifact] = field(default_factory=list)


# Failures that hand control to the next subtitle strategy
_RECOVERABLE = (SpeechEngineNotConfigured, TranscriptionFailed)


def _parse_strategies(names: list[str]) -> list[SubtitleSource]:
    strategies = []
    for name in names:
        try:
            source = SubtitleSource(name)
        except ValueError:
            raise InvalidInput(f"Unknown subtitle strategy {name!r}") from None
        if source is not SubtitleSource.NONE:
            strategies.append(source)
    return strategies


def _run_strategy(
    source: SubtitleSource,
    clip_path: Path,
    source_path: Path,
    segment: MediaSegment,
    orientation: Orientation,
    oracle: SubtitleOracle | None,
    language: str,
) -> str:
    if source is SubtitleSource.WORDS:
        words = extract_words(clip_path, language, workdir=clip_path.parent)
        return build_karaoke_ass(words, orientation) if words else ""
    if source is SubtitleSource.SPEECH_SRT:
        return normalize_srt(extract_srt(clip_path, language, workdir=clip_path.parent))
    if source is SubtitleSource.ORACLE_SRT:
        if oracle is None:
            logger.debug("No subtitle oracle configured")
            return ""
        return parse_subtitle_response(oracle.transcribe(source_path, segment.start, segment.end))
    return ""


def produce_subtitles(
    clip_path: Path,
    source_path: Path,
    segment: MediaSegment,
    orientation: Orientation,
    strategies: list[str],
    oracle: SubtitleOracle | None = None,
    language: str = "pt",
) -> SubtitleResult:
    """Try each strategy in order and return the first usable subtitles."""
    for source in _parse_strategies(strategies):
        try:
            text = _run_strategy(
                source, Path(clip_path), Path(source_path), segment, orientation, oracle, language
            )
        except _RECOVERABLE as e:
            logger.warning("Subtitle strategy %s unavailable: %s", source.value, e)
            continue
        if text:
            logger.info("Subtitles from %s", source.value)
            return SubtitleResult(source=source, text=text)
        logger.info("Subtitle strategy %s produced nothing", source.value)

    return SubtitleResult(source=SubtitleSource.NONE)


def process_segment(
    source_path: Path,
    segment: MediaSegment,
    orientation: Orientation,
    out_dir: Path,
    subtitles: SubtitleConfig | None = None,
    language: str = "pt",
    oracle: SubtitleOracle | None = None,
    on_progress: Callable[[str, float], None] | None = None,
    should_continue: Callable[[], bool] | None = None,
) -> ProcessedArtifact:
    """Cut one segment, attach subtitles and return the finished artifact.

    *should_continue* is consulted once, before burn-in; in-flight tool
    calls are never interrupted.
    """
    subtitles = subtitles or SubtitleConfig()
    orientation = Orientation.parse(orientation)

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    _progress("Cutting clip", 0.0)
    clip_path = cut(source_path, segment.start, segment.end, orientation, out_dir)

    result = SubtitleResult(source=SubtitleSource.NONE)
    if subtitles.enabled:
        _progress("Generating subtitles", 0.4)
        result = produce_subtitles(
            clip_path,
            source_path,
            segment,
            orientation,
            subtitles.strategies,
            oracle=oracle,
            language=language,
        )
        if result.source is SubtitleSource.WORDS:
            logger.debug("Karaoke script has %d events", len(parse_ass_events(result.text)))

    output_path = clip_path
    if result.text:
        if should_continue is not None and not should_continue():
            logger.info("Stopping before burn-in for %s", clip_path.name)
        else:
            _progress("Burning subtitles", 0.7)
            output_path = burn_in(
                clip_path, result.text, out_dir, keep_subtitle_file=subtitles.keep_files or None
            )

    _progress("Done", 1.0)
    return ProcessedArtifact(
        output_path=output_path,
        orientation=orientation,
        subtitles=result.text or None,
        subtitle_source=result.source.value,
        segment=segment,
    )


def process(
    manifest: Manifest,
    oracle=None,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Execute the full pipeline for every validated segment of the manifest.

    Args:
        manifest: Validated job manifest.
        oracle: Optional AI collaborator implementing ``propose_segments``
            and/or ``transcribe``.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    _progress("Probing video duration", 0.0)
    duration = ffutil.probe_duration(manifest.input)

    _progress("Selecting segments", 0.05)
    if not manifest.segments and hasattr(oracle, "propose_segments"):
        segments = propose_segments(oracle, manifest.input, duration, manifest.segment_rules)
    else:
        segments = validate_segments(manifest.segments, duration, manifest.segment_rules)

    subtitle_oracle = oracle if hasattr(oracle, "transcribe") else None
    result = EngineResult(source_duration=duration, segments=segments)
    n = len(segments)
    for i, segment in enumerate(segments):
        base = 0.1 + 0.9 * i / n
        span = 0.9 / n

        def seg_progress(stage: str, frac: float, base=base, span=span, i=i) -> None:
            _progress(f"Clip {i + 1}/{n}: {stage}", base + frac * span)

        artifact = process_segment(
            manifest.input,
            segment,
            manifest.orientation,
            manifest.output_dir,
            subtitles=manifest.subtitles,
            language=manifest.language,
            oracle=subtitle_oracle,
            on_progress=seg_progress,
        )
        result.artifacts.append(artifact)

    _progress("Done", 1.0)
    return result
