"""Speech-to-text via the whisper.cpp command-line tool.

The clip's audio is extracted as mono 16 kHz WAV (the format whisper models
are trained on) and handed to whisper.cpp, which writes SRT and JSON files
next to it. Word timings are read from the JSON; when a segment carries no
word-level timestamps its words are spread evenly across the segment.
"""

import json
import logging
from pathlib import Path

from viralclip import ffutil
from viralclip.config import TRANSCRIBE_TIMEOUT, ToolSettings
from viralclip.editors.srt import parse_srt
from viralclip.errors import SpeechEngineNotConfigured, ToolFailed, TranscriptionFailed
from viralclip.models import WordTiming
from viralclip.toolpaths import WHISPER_CPP, tool_available

logger = logging.getLogger(__name__)

# Used when a word carries a start but no end
DEFAULT_WORD_LENGTH = 0.3


def _require_engine(settings: ToolSettings) -> tuple[str, Path]:
    binary = WHISPER_CPP.resolve()
    model = settings.whisper_model
    if not tool_available(binary) or model is None or not model.exists():
        raise SpeechEngineNotConfigured(
            "whisper.cpp is not configured. Set WHISPER_CPP_PATH and WHISPER_CPP_MODEL"
        )
    return binary, model


def synthesize_words(start: float, end: float, text: str) -> list[WordTiming]:
    """Spread the words of *text* evenly over [start, end].

    Best-effort fallback for segments without word-level timestamps; each
    word gets the same share of the segment.
    """
    parts = text.split()
    if not parts:
        return []
    duration = max(0.01, end - start)
    slot = duration / len(parts)
    return [
        WordTiming(start=start + i * slot, end=start + (i + 1) * slot, text=p)
        for i, p in enumerate(parts)
    ]


def _number(value, fallback: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return fallback


def _words_from_segment(seg: dict) -> list[WordTiming]:
    # whisper.cpp's native layout reports millisecond offsets
    if "offsets" in seg:
        offsets = seg.get("offsets") or {}
        seg_start = _number(offsets.get("from"), 0.0) / 1000
        seg_end = _number(offsets.get("to"), seg_start * 1000) / 1000
    else:
        seg_start = _number(seg.get("start"), 0.0)
        seg_end = _number(seg.get("end"), seg_start)

    raw_words = seg.get("words")
    if isinstance(raw_words, list):
        words = []
        for w in raw_words:
            if not isinstance(w, dict):
                continue
            ws = _number(w.get("start"), seg_start)
            we = _number(w.get("end"), ws + DEFAULT_WORD_LENGTH)
            text = str(w.get("word", w.get("text", ""))).strip()
            if text:
                words.append(WordTiming(start=ws, end=we, text=text))
        return words

    text = seg.get("text")
    if isinstance(text, str):
        return synthesize_words(seg_start, seg_end, text)
    return []


def parse_word_json(text: str) -> list[WordTiming]:
    """Parse engine JSON output into word timings sorted by start.

    Malformed JSON yields an empty list; the caller has other subtitle
    sources to fall back on.
    """
    try:
        data = json.loads(text)
    except ValueError:
        logger.warning("Speech engine JSON is malformed; no word timings")
        return []
    if not isinstance(data, dict):
        return []

    segments = data.get("segments")
    if not isinstance(segments, list):
        segments = data.get("transcription")
    if not isinstance(segments, list):
        return []

    words: list[WordTiming] = []
    synthetic = 0
    for seg in segments:
        if not isinstance(seg, dict):
            continue
        if not isinstance(seg.get("words"), list):
            synthetic += 1
        words.extend(_words_from_segment(seg))

    if synthetic:
        logger.info("Synthesized even word timing for %d segment(s)", synthetic)
    return sorted(words, key=lambda w: w.start)


def _words_from_srt(text: str) -> list[WordTiming]:
    words: list[WordTiming] = []
    for block in parse_srt(text):
        words.extend(synthesize_words(block.start, block.end, block.text))
    return sorted(words, key=lambda w: w.start)


def _run_engine(
    clip_path: Path,
    language: str,
    workdir: Path | None,
    want_json: bool,
) -> tuple[str | None, str | None]:
    """Extract audio, run whisper.cpp, and return (json_text, srt_text)."""
    settings = ToolSettings.from_env()
    _require_engine(settings)

    clip_path = Path(clip_path)
    workdir = Path(workdir) if workdir else clip_path.parent
    base = workdir / ffutil.unique_name("aud", "")
    wav_path = base.with_suffix(".wav")
    json_path = base.with_suffix(".json")
    srt_path = base.with_suffix(".srt")

    args = [
        "-f", str(wav_path),
        "-m", str(settings.whisper_model),
        "-l", language,
        "-osrt",
    ]
    if want_json:
        args.append("-oj")
    args.extend(["-of", str(base)])

    try:
        ffutil.extract_audio(clip_path, wav_path)
        logger.info("Transcribing %s (%s)", clip_path.name, language)
        try:
            ffutil.run_tool(WHISPER_CPP, args, timeout=TRANSCRIBE_TIMEOUT)
        except ToolFailed as e:
            raise TranscriptionFailed("Transcription failed", e.detail) from e

        json_text = json_path.read_text(encoding="utf-8") if json_path.exists() else None
        srt_text = srt_path.read_text(encoding="utf-8") if srt_path.exists() else None
        return json_text, srt_text
    finally:
        for p in (wav_path, json_path, srt_path):
            try:
                p.unlink()
            except OSError:
                pass


def extract_words(
    clip_path: Path, language: str = "pt", workdir: Path | None = None
) -> list[WordTiming]:
    """Transcribe *clip_path* into word timings relative to the clip start."""
    json_text, srt_text = _run_engine(clip_path, language, workdir, want_json=True)

    if json_text is not None:
        words = parse_word_json(json_text)
    elif srt_text is not None:
        logger.warning("No JSON from speech engine; using SRT segment timing")
        words = _words_from_srt(srt_text)
    else:
        words = []

    logger.info("Extracted %d words from %s", len(words), Path(clip_path).name)
    return words


def extract_srt(
    clip_path: Path, language: str = "pt", workdir: Path | None = None
) -> str:
    """Transcribe *clip_path* into raw SRT text."""
    _, srt_text = _run_engine(clip_path, language, workdir, want_json=False)
    if srt_text is None:
        raise TranscriptionFailed("Transcription produced no SRT output")
    return srt_text.strip()
