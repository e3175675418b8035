"""Narration renderer — text to a finished clip with no source video.

Synthesized speech over a solid colour background with karaoke subtitles.
Cutting and burn-in are fused into a single ffmpeg pass here because the
colour source is generated by ffmpeg itself.
"""

import logging
from pathlib import Path

from viralclip import ffutil
from viralclip.config import (
    FRAME_SIZES,
    NARRATION_MAX_OUTPUT,
    NARRATION_TIMEOUT,
    EncodingConfig,
    ToolSettings,
)
from viralclip.editors.ass import build_approximate_ass
from viralclip.errors import InvalidInput, RenderFailed, ToolFailed
from viralclip.models import NarrationResult, Orientation
from viralclip.synth import PiperSynthesizer, Synthesizer
from viralclip.toolpaths import FFMPEG

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND = "#0F0F10"
FRAME_RATE = 30


def _ffmpeg_color(color: str) -> str:
    color = color.strip()
    if color.startswith("#"):
        return "0x" + color[1:]
    return color


def build_render_args(
    audio_path: Path,
    subtitle_path: Path,
    duration: float,
    orientation: Orientation,
    background: str,
    output_path: Path,
    sample_rate: int,
    encoding: EncodingConfig,
) -> list[str]:
    width, height = FRAME_SIZES[Orientation.parse(orientation)]
    source = (
        f"color=c={_ffmpeg_color(background)}:s={width}x{height}"
        f":r={FRAME_RATE}:d={duration:.3f}"
    )
    return [
        "-y",
        "-f", "lavfi",
        "-i", source,
        "-i", str(audio_path),
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-vf", ffutil.subtitles_filter(subtitle_path),
        *encoding.args(),
        "-ar", str(sample_rate),
        "-shortest",
        str(output_path),
    ]


def render_narrated_video(
    text: str,
    orientation: Orientation,
    out_dir: Path,
    background: str = DEFAULT_BACKGROUND,
    synthesizer: Synthesizer | None = None,
    encoding: EncodingConfig | None = None,
) -> NarrationResult:
    """Render *text* as a narrated video with word-highlighted subtitles."""
    text = (text or "").strip()
    if not text:
        raise InvalidInput("Empty text for rendering")

    orientation = Orientation.parse(orientation)
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    settings = ToolSettings.from_env()

    tts = (synthesizer or PiperSynthesizer()).synthesize(text, out_dir)
    duration = tts.duration or ffutil.probe_duration(tts.audio_path)

    words = text.split()
    script = build_approximate_ass(words, duration, orientation)
    ass_path = out_dir / ffutil.unique_name("overlay", ".ass")
    ass_path.write_text(script, encoding="utf-8")

    output_path = out_dir / ffutil.unique_name("ai_video", ".mp4")
    args = build_render_args(
        tts.audio_path,
        ass_path,
        duration,
        orientation,
        background,
        output_path,
        settings.piper_sample_rate,
        encoding or EncodingConfig(),
    )

    logger.info("Rendering %.1fs narrated %s video", duration, orientation.value)
    try:
        ffutil.run_tool(
            FFMPEG, args, timeout=NARRATION_TIMEOUT, max_output=NARRATION_MAX_OUTPUT
        )
    except ToolFailed as e:
        raise RenderFailed("Failed to render narrated video", e.detail) from e
    finally:
        if not settings.keep_subtitle_files:
            ass_path.unlink(missing_ok=True)

    if not output_path.exists():
        raise RenderFailed("Failed to render narrated video")

    return NarrationResult(output_path=output_path, audio_path=tts.audio_path, duration=duration)
