"""Burn-in editor — composites a subtitle track into the video pixels."""

import logging
from pathlib import Path

from viralclip import ffutil
from viralclip.config import BURN_TIMEOUT, SRT_FORCE_STYLE, EncodingConfig, ToolSettings
from viralclip.editors.ass import is_ass
from viralclip.errors import BurnInFailed, ToolFailed
from viralclip.toolpaths import FFMPEG

logger = logging.getLogger(__name__)


def write_subtitle_file(subtitle_text: str, out_dir: Path) -> Path:
    """Write the payload to a temp file whose extension matches its dialect."""
    suffix = ".ass" if is_ass(subtitle_text) else ".srt"
    path = Path(out_dir) / ffutil.unique_name("subtitles", suffix)
    path.write_text(subtitle_text, encoding="utf-8")
    if not path.exists() or path.stat().st_size == 0:
        raise BurnInFailed("Failed to write subtitle file")
    logger.debug("Subtitle file written: %s (%d chars)", path, len(subtitle_text))
    return path


def burn_in(
    video_path: Path,
    subtitle_text: str,
    out_dir: Path,
    keep_subtitle_file: bool | None = None,
    encoding: EncodingConfig | None = None,
) -> Path:
    """Overlay *subtitle_text* onto *video_path* and return the new video.

    Blank subtitles are a no-op: *video_path* is returned untouched. On
    success the pre-burn video and the temp subtitle file are removed; set
    ``KEEP_SRT=1`` or *keep_subtitle_file* to retain the latter.
    """
    video_path = Path(video_path)
    if not subtitle_text or not subtitle_text.strip():
        return video_path

    if keep_subtitle_file is None:
        keep_subtitle_file = ToolSettings.from_env().keep_subtitle_files

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    sub_path = write_subtitle_file(subtitle_text, out_dir)
    output_path = out_dir / ffutil.unique_name("with_subtitles", ".mp4")

    force_style = None if sub_path.suffix == ".ass" else SRT_FORCE_STYLE
    args = [
        "-y",
        "-i", str(video_path),
        "-map", "0:v:0",
        "-map", "0:a:0?",
        "-vf", ffutil.subtitles_filter(sub_path, force_style),
        *(encoding or EncodingConfig()).args(),
        "-shortest",
        str(output_path),
    ]

    logger.info("Burning %s subtitles into %s", sub_path.suffix[1:], video_path.name)
    try:
        ffutil.run_tool(FFMPEG, args, timeout=BURN_TIMEOUT)
        if not output_path.exists():
            raise BurnInFailed("Subtitled video was not created")
    except ToolFailed as e:
        raise BurnInFailed("Failed to add subtitles", e.detail) from e
    finally:
        if not keep_subtitle_file:
            sub_path.unlink(missing_ok=True)

    if video_path != output_path:
        video_path.unlink(missing_ok=True)
    return output_path
