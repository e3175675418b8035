"""Fetch a source video from a social-platform URL with yt-dlp.

Formats are tried from most to least specific: MP4 streams merged to MP4,
any streams merged to MKV, then the best single file as published.
"""

import logging
from pathlib import Path
from urllib.parse import urlparse

from viralclip import ffutil
from viralclip.config import DOWNLOAD_TIMEOUT, MAX_DOWNLOAD_BYTES
from viralclip.errors import DownloadFailed, InvalidInput, ToolFailed, ToolTimeout
from viralclip.toolpaths import YTDLP

logger = logging.getLogger(__name__)

SUPPORTED_PLATFORMS = (
    "youtube.com",
    "youtu.be",
    "tiktok.com",
    "instagram.com",
    "facebook.com",
    "twitter.com",
    "x.com",
    "vimeo.com",
)

# (format selector, merge container or None)
DOWNLOAD_FORMATS = (
    ("bv*[ext=mp4]+ba[ext=m4a]/b[ext=mp4]", "mp4"),
    ("bv*+ba/b", "mkv"),
    ("best", None),
)


def is_supported_url(url: str) -> bool:
    """True for http(s) URLs on one of the supported platforms or a subdomain."""
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError):
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower()
    return any(host == p or host.endswith("." + p) for p in SUPPORTED_PLATFORMS)


def build_download_args(url: str, fmt: str, merge: str | None, template: str) -> list[str]:
    args = ["--restrict-filenames", "--no-playlist", "-f", fmt]
    if merge:
        args.extend(["--merge-output-format", merge])
    args.extend(["--print", "after_move:filepath", "-o", template, url])
    return args


def _locate(stdout: str, out_dir: Path, prefix: str) -> Path | None:
    lines = [ln.strip() for ln in (stdout or "").splitlines() if ln.strip()]
    if lines:
        reported = Path(lines[-1])
        if not reported.is_absolute():
            reported = out_dir / reported
        if reported.exists():
            return reported

    # The printed path can be mangled by console encoding; match on our prefix
    candidates = sorted(
        out_dir.glob(f"{prefix}*"), key=lambda p: p.stat().st_mtime, reverse=True
    )
    return candidates[0] if candidates else None


def download_video(
    url: str, out_dir: Path, max_bytes: int = MAX_DOWNLOAD_BYTES
) -> Path:
    """Download *url* into *out_dir* and return the local file path."""
    url = (url or "").strip()
    if not is_supported_url(url):
        raise InvalidInput(f"Unsupported video URL: {url!r}")

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    prefix = ffutil.unique_name("download", "-")
    template = str(out_dir / f"{prefix}%(title)s.%(ext)s")

    path = None
    last_error = None
    for fmt, merge in DOWNLOAD_FORMATS:
        logger.info("Downloading %s (format %s)", url, fmt)
        try:
            result = ffutil.run_tool(
                YTDLP, build_download_args(url, fmt, merge, template), timeout=DOWNLOAD_TIMEOUT
            )
        except (ToolFailed, ToolTimeout) as e:
            logger.warning("yt-dlp format %s failed: %s", fmt, e)
            last_error = e
            continue

        path = _locate(result.stdout, out_dir, prefix)
        if path is not None:
            break
        logger.warning("yt-dlp format %s reported no file", fmt)

    if path is None:
        raise DownloadFailed(
            "Failed to download video", str(last_error) if last_error else None
        )

    size = path.stat().st_size
    if size > max_bytes:
        path.unlink(missing_ok=True)
        raise InvalidInput(
            f"Video too large ({size / 1024 / 1024:.2f}MB). "
            f"Maximum allowed: {max_bytes / 1024 / 1024:.0f}MB"
        )

    logger.info("Downloaded %s (%.1f MB)", path.name, size / 1024 / 1024)
    return path
