"""Subprocess helpers for ffmpeg/ffprobe and the other external tools."""

import logging
import math
import subprocess
import time
import uuid
from pathlib import Path

from viralclip.config import EXTRACT_AUDIO_TIMEOUT, MAX_OUTPUT, PROBE_TIMEOUT
from viralclip.errors import (
    AudioExtractionFailed,
    DurationUnavailable,
    InvalidInput,
    ToolFailed,
    ToolNotInstalled,
    ToolOutputTooLarge,
    ToolTimeout,
)
from viralclip.toolpaths import FFMPEG, FFPROBE, Tool

logger = logging.getLogger(__name__)

# Exit statuses a shell uses for "command not found" (POSIX / cmd.exe)
_NOT_FOUND_STATUSES = (127, 9009)
_NOT_FOUND_SIGNATURES = ("is not recognized as an internal or external command", "command not found")


def run_tool(
    tool: Tool,
    args: list[str],
    *,
    timeout: float,
    max_output: int = MAX_OUTPUT,
    input: str | None = None,
) -> subprocess.CompletedProcess:
    """Resolve *tool*, run it with *args* and return the completed process.

    Raises ToolNotInstalled when the binary cannot be spawned, ToolTimeout,
    ToolOutputTooLarge, or ToolFailed on a non-zero exit.
    """
    executable = tool.resolve()
    cmd = [executable, *args]
    logger.debug("Running %s", cmd)

    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, timeout=timeout, input=input
        )
    except subprocess.TimeoutExpired as e:
        raise ToolTimeout(f"{tool.name} timed out after {timeout:.0f}s") from e
    except OSError as e:
        raise ToolNotInstalled(tool.name, tool.install_hint, str(e)) from e

    stdout = result.stdout or ""
    stderr = result.stderr or ""
    # Checked once the process has exited and its output is buffered; this
    # bounds what callers parse, not the memory used while the tool runs.
    output_bytes = len(stdout.encode("utf-8", "replace")) + len(
        stderr.encode("utf-8", "replace")
    )
    if output_bytes > max_output:
        raise ToolOutputTooLarge(
            f"{tool.name} produced more than {max_output} bytes of output"
        )

    if result.returncode != 0:
        if result.returncode in _NOT_FOUND_STATUSES or any(
            sig in stderr for sig in _NOT_FOUND_SIGNATURES
        ):
            raise ToolNotInstalled(tool.name, tool.install_hint, stderr)
        raise ToolFailed(tool.name, result.returncode, stderr)

    return result


def unique_name(prefix: str, suffix: str) -> str:
    """Collision-resistant file name: millisecond timestamp + random hex."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}{suffix}"


def escape_filter_path(path: str | Path) -> str:
    """Escape a file path for use inside an ffmpeg filter-graph option.

    Backslashes become forward slashes (Windows paths), then the characters
    the filter parser treats as separators or quotes are escaped.
    """
    escaped = str(path).replace("\\", "/")
    escaped = escaped.replace(":", "\\:")
    escaped = escaped.replace("'", "\\'")
    escaped = escaped.replace(",", "\\,")
    return escaped


def subtitles_filter(path: str | Path, force_style: str | None = None) -> str:
    """Build the ``subtitles=`` video filter for a subtitle file."""
    filt = f"subtitles=filename='{escape_filter_path(path)}':charenc=UTF-8"
    if force_style:
        filt += f":force_style='{force_style}'"
    return filt


def probe_duration(input_path: Path) -> float:
    """Return the container duration of *input_path* in seconds."""
    input_path = Path(input_path)
    if not input_path.exists():
        raise InvalidInput(f"Media file not found: {input_path}")

    try:
        result = run_tool(
            FFPROBE,
            [
                "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                str(input_path),
            ],
            timeout=PROBE_TIMEOUT,
        )
    except ToolFailed as e:
        raise DurationUnavailable(
            f"Could not read duration of {input_path.name}", e.detail
        ) from e

    raw = (result.stdout or "").strip().splitlines()
    try:
        duration = float(raw[0]) if raw else math.nan
    except ValueError:
        duration = math.nan

    if not math.isfinite(duration) or duration <= 0:
        raise DurationUnavailable(
            f"Could not read duration of {input_path.name}", result.stdout
        )
    return duration


def extract_audio(
    input_path: Path, output_path: Path, sample_rate: int = 16000
) -> Path:
    """Extract audio as mono WAV at the given sample rate (for whisper.cpp)."""
    try:
        run_tool(
            FFMPEG,
            [
                "-y",
                "-i", str(input_path),
                "-vn",
                "-acodec", "pcm_s16le",
                "-ar", str(sample_rate),
                "-ac", "1",
                str(output_path),
            ],
            timeout=EXTRACT_AUDIO_TIMEOUT,
        )
    except ToolFailed as e:
        raise AudioExtractionFailed("Failed to extract audio from clip", e.detail) from e

    if not Path(output_path).exists():
        raise AudioExtractionFailed("Failed to extract audio from clip")
    return Path(output_path)
