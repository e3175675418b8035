"""Cutter — extracts one time range of the source into a re-encoded clip."""

import logging
from pathlib import Path

from viralclip import ffutil
from viralclip.config import CUT_TIMEOUT, EncodingConfig
from viralclip.errors import CutFailed, InvalidInput, InvalidRange, ToolFailed
from viralclip.models import Orientation
from viralclip.toolpaths import FFMPEG

logger = logging.getLogger(__name__)

VERTICAL_FILTER = "crop=ih*9/16:ih,scale=1080:1920"
HORIZONTAL_FILTER = (
    "scale=1920:1080:force_original_aspect_ratio=decrease,"
    "pad=1920:1080:(ow-iw)/2:(oh-ih)/2"
)


def orientation_filter(orientation: Orientation) -> str:
    if Orientation.parse(orientation) is Orientation.VERTICAL:
        return VERTICAL_FILTER
    return HORIZONTAL_FILTER


def build_cut_args(
    source_path: Path,
    start: float,
    duration: float,
    orientation: Orientation,
    output_path: Path,
    encoding: EncodingConfig,
) -> list[str]:
    return [
        "-y",
        "-ss", str(start),
        "-t", str(duration),
        "-i", str(source_path),
        "-map", "0:v:0",
        "-map", "0:a:0?",
        "-vf", orientation_filter(orientation),
        *encoding.args(),
        "-shortest",
        str(output_path),
    ]


def cut(
    source_path: Path,
    start: float,
    end: float,
    orientation: Orientation,
    out_dir: Path,
    encoding: EncodingConfig | None = None,
) -> Path:
    """Cut [start, end] of *source_path* into *out_dir* and return the clip path.

    Seeks to *start* and limits by duration rather than an absolute end time.
    """
    source_path = Path(source_path)
    out_dir = Path(out_dir)
    if not source_path.exists():
        raise InvalidInput(f"Video file not found: {source_path}")

    duration = end - start
    if duration <= 0:
        raise InvalidRange("Invalid cut range (end must be greater than start)")
    orientation = Orientation.parse(orientation)

    out_dir.mkdir(parents=True, exist_ok=True)
    output_path = out_dir / ffutil.unique_name("cut", ".mp4")
    args = build_cut_args(
        source_path, start, duration, orientation, output_path, encoding or EncodingConfig()
    )

    logger.info(
        "Cutting %s [%.2f, %.2f] -> %s (%s)",
        source_path.name, start, end, output_path.name, orientation.value,
    )
    try:
        ffutil.run_tool(FFMPEG, args, timeout=CUT_TIMEOUT)
    except ToolFailed as e:
        raise CutFailed("Failed to cut video", e.detail) from e

    if not output_path.exists():
        raise CutFailed("Cut video was not created")
    return output_path
