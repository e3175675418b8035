"""Environment-driven settings and encoder/style presets.

Settings are read from the environment each time ``ToolSettings.from_env`` is
called so a model installed mid-session is picked up on the next run.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from viralclip.models import Orientation

# Subprocess limits (seconds / bytes)
PROBE_TIMEOUT = 30
CUT_TIMEOUT = 300
BURN_TIMEOUT = 300
EXTRACT_AUDIO_TIMEOUT = 300
TRANSCRIBE_TIMEOUT = 900
SYNTH_TIMEOUT = 300
NARRATION_TIMEOUT = 600
DOWNLOAD_TIMEOUT = 180
MAX_OUTPUT = 50 * 1024 * 1024
NARRATION_MAX_OUTPUT = 80 * 1024 * 1024
MAX_DOWNLOAD_BYTES = 100 * 1024 * 1024

DEFAULT_SAMPLE_RATE = 22050


@dataclass
class ToolSettings:
    """Model paths and flags taken from the environment."""

    whisper_model: Path | None = None
    piper_model: Path | None = None
    piper_sample_rate: int = DEFAULT_SAMPLE_RATE
    keep_subtitle_files: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ToolSettings":
        env = os.environ if environ is None else environ
        whisper_model = env.get("WHISPER_CPP_MODEL") or None
        piper_model = env.get("PIPER_MODEL") or None
        try:
            sample_rate = int(env.get("PIPER_SAMPLE_RATE") or DEFAULT_SAMPLE_RATE)
        except ValueError:
            sample_rate = DEFAULT_SAMPLE_RATE
        return cls(
            whisper_model=Path(whisper_model) if whisper_model else None,
            piper_model=Path(piper_model) if piper_model else None,
            piper_sample_rate=sample_rate,
            keep_subtitle_files=env.get("KEEP_SRT") == "1",
        )


@dataclass
class EncodingConfig:
    """Re-encode settings shared by every ffmpeg pass that writes a clip."""

    video_codec: str = "libx264"
    preset: str = "fast"
    crf: int = 23
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"

    def args(self) -> list[str]:
        return [
            "-c:v", self.video_codec,
            "-preset", self.preset,
            "-crf", str(self.crf),
            "-c:a", self.audio_codec,
            "-b:a", self.audio_bitrate,
            "-movflags", "+faststart",
        ]


@dataclass
class SubtitleStyle:
    """Resolution and typography of a generated ASS script."""

    play_res_x: int
    play_res_y: int
    font_size: int
    margin_v: int
    font: str = "Arial"


# Word-aligned (karaoke) scripts burned onto cut clips
KARAOKE_STYLES = {
    Orientation.VERTICAL: SubtitleStyle(1080, 1920, font_size=48, margin_v=80),
    Orientation.HORIZONTAL: SubtitleStyle(1920, 1080, font_size=42, margin_v=60),
}

# Approximate scripts on narrated videos use a larger face
NARRATION_STYLES = {
    Orientation.VERTICAL: SubtitleStyle(1080, 1920, font_size=56, margin_v=120),
    Orientation.HORIZONTAL: SubtitleStyle(1920, 1080, font_size=48, margin_v=90),
}

# Applied to plain SRT payloads, which carry no style of their own
SRT_FORCE_STYLE = (
    "FontName=Arial,FontSize=28,PrimaryColour=&H00FFFFFF,OutlineColour=&H000000,"
    "BorderStyle=3,Outline=2,Shadow=0,BackColour=&H00000000"
)

FRAME_SIZES = {
    Orientation.VERTICAL: (1080, 1920),
    Orientation.HORIZONTAL: (1920, 1080),
}
