"""Locate external executables (ffmpeg, ffprobe, whisper.cpp, piper, yt-dlp).

Paths are resolved on every call; nothing is cached, so a tool installed
while the server is running is found on the next invocation.
"""

import os
import shutil
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Tool:
    """A logical external tool and where to look for it."""

    name: str
    env_var: str
    candidates: tuple[str, ...] = field(default_factory=tuple)
    install_hint: str = ""

    def resolve(self) -> str:
        return resolve_tool(self)


def _exists(path: str) -> bool:
    try:
        return os.path.exists(path)
    except (OSError, ValueError):
        return False


def resolve_tool(tool: Tool) -> str:
    """Return the first existing candidate, else the bare tool name.

    The environment override is checked first, then the fixed install
    locations. When nothing exists on disk the bare name is returned so the
    OS reports "not found" at spawn time.
    """
    override = os.environ.get(tool.env_var)
    candidates = [override] if override else []
    candidates.extend(tool.candidates)

    for candidate in candidates:
        if _exists(candidate):
            return candidate
    return tool.name


def tool_available(path: str) -> bool:
    """True if *path* exists on disk or names an executable on PATH."""
    return _exists(path) or shutil.which(path) is not None


_FFMPEG_HINT = "Please install FFmpeg: https://ffmpeg.org/download.html"

FFMPEG = Tool(
    name="ffmpeg",
    env_var="FFMPEG_PATH",
    candidates=(
        "C:/ProgramData/chocolatey/bin/ffmpeg.exe",
        "C:/ffmpeg/bin/ffmpeg.exe",
        "C:/Program Files/ffmpeg/bin/ffmpeg.exe",
        "C:/Program Files (x86)/ffmpeg/bin/ffmpeg.exe",
        "/usr/local/bin/ffmpeg",
        "/opt/homebrew/bin/ffmpeg",
        "/usr/bin/ffmpeg",
    ),
    install_hint=_FFMPEG_HINT,
)

FFPROBE = Tool(
    name="ffprobe",
    env_var="FFPROBE_PATH",
    candidates=(
        "C:/ProgramData/chocolatey/bin/ffprobe.exe",
        "C:/ffmpeg/bin/ffprobe.exe",
        "C:/Program Files/ffmpeg/bin/ffprobe.exe",
        "C:/Program Files (x86)/ffmpeg/bin/ffprobe.exe",
        "/usr/local/bin/ffprobe",
        "/opt/homebrew/bin/ffprobe",
        "/usr/bin/ffprobe",
    ),
    install_hint=_FFMPEG_HINT,
)

WHISPER_CPP = Tool(
    name="whisper-cli",
    env_var="WHISPER_CPP_PATH",
    candidates=(
        "./bin/whisper.cpp/main.exe",
        "./bin/whisper.cpp/whisper-cli",
        "./whisper/main.exe",
        "./whisper/main",
        "/usr/local/bin/whisper-cli",
        "/opt/homebrew/bin/whisper-cli",
    ),
    install_hint=(
        "Build whisper.cpp (https://github.com/ggerganov/whisper.cpp) and set "
        "WHISPER_CPP_PATH and WHISPER_CPP_MODEL"
    ),
)

PIPER = Tool(
    name="piper",
    env_var="PIPER_PATH",
    candidates=(
        "C:/ProgramData/chocolatey/bin/piper.exe",
        "C:/piper/piper.exe",
        "C:/Program Files/piper/piper.exe",
        "C:/Program Files (x86)/piper/piper.exe",
        "/usr/local/bin/piper",
        "/opt/homebrew/bin/piper",
    ),
    install_hint=(
        "Install Piper (https://github.com/rhasspy/piper) and set PIPER_PATH "
        "and PIPER_MODEL"
    ),
)

YTDLP = Tool(
    name="yt-dlp",
    env_var="YTDLP_PATH",
    candidates=(
        "C:/ProgramData/chocolatey/bin/yt-dlp.exe",
        "C:/yt-dlp/yt-dlp.exe",
        "/usr/local/bin/yt-dlp",
        "/opt/homebrew/bin/yt-dlp",
        "/usr/bin/yt-dlp",
    ),
    install_hint="Install yt-dlp: https://github.com/yt-dlp/yt-dlp#installation",
)
