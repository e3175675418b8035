#!/usr/bin/env python3
"""Generate a synthetic source video for manual pipeline runs.

Produces a landscape 1280x720 video (default 150 seconds) cycling through
coloured 30-second sections, each with its own tone, so cuts and the
vertical crop are easy to eyeball:
  0-30s    440 Hz + blue
  30-60s   660 Hz + red
  60-90s   880 Hz + green
  ...
"""

import subprocess
import sys
from pathlib import Path

SECTION = 30
COLORS = ["blue", "red", "green", "yellow", "purple"]
TONES = [440, 660, 880, 550, 770]


def generate_test_video(output: Path, duration: int = 150) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    n = max(1, -(-duration // SECTION))
    video_parts = []
    audio_parts = []
    for i in range(n):
        d = min(SECTION, duration - i * SECTION)
        video_parts.append(f"color=c={COLORS[i % len(COLORS)]}:s=1280x720:d={d}:r=30[v{i}]")
        audio_parts.append(f"sine=f={TONES[i % len(TONES)]}:d={d}[a{i}]")

    labels = "".join(f"[v{i}][a{i}]" for i in range(n))
    filter_complex = ";".join(
        video_parts + audio_parts + [f"{labels}concat=n={n}:v=1:a=1[vout][aout]"]
    )

    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", filter_complex,
        "-map", "[vout]",
        "-map", "[aout]",
        "-c:v", "libx264",
        "-c:a", "aac",
        "-shortest",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output} ({duration}s)")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/source.mp4")
    seconds = int(sys.argv[2]) if len(sys.argv) > 2 else 150
    generate_test_video(out, seconds)
