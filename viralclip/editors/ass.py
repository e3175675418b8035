"""ASS script builders with karaoke (``\\kf``) word highlighting.

Two entry points share one header:

* ``build_karaoke_ass`` takes real word timings (speech engine output) and
  breaks lines on pauses and a character budget.
* ``build_approximate_ass`` only knows the total narration length and the
  words, and spreads them evenly.
"""

import re

from viralclip.config import KARAOKE_STYLES, NARRATION_STYLES, SubtitleStyle
from viralclip.models import AssEvent, Orientation, WordTiming

SCRIPT_MARKER = "[Script Info]"

# Word-aligned grouping
LINE_GAP = 0.35
LINE_CHARS = 40
KARAOKE_END_PAD = 0.01

# Approximate timing
APPROX_LINE_CHARS = 42
MIN_WORD_DURATION = 0.2
MIN_TOTAL_DURATION = 0.5
APPROX_END_PAD = 0.02

_DIALOGUE_RE = re.compile(
    r"^Dialogue:\s*\d+,(\d+):(\d{2}):(\d{2})\.(\d{2}),(\d+):(\d{2}):(\d{2})\.(\d{2}),[^,]*,[^,]*,"
    r"[^,]*,[^,]*,[^,]*,[^,]*,(.*)$"
)


def format_ass_time(seconds: float) -> str:
    """Format seconds as ``H:MM:SS.CC``."""
    total_cs = int(round(max(seconds, 0.0) * 100))
    h, rem = divmod(total_cs, 360_000)
    m, rem = divmod(rem, 6000)
    s, cs = divmod(rem, 100)
    return f"{h}:{m:02d}:{s:02d}.{cs:02d}"


def _escape_text(text: str) -> str:
    # Braces open override blocks and a backslash starts a tag
    return text.replace("\\", "/").replace("{", "(").replace("}", ")").replace("\n", " ")


def ass_header(style: SubtitleStyle) -> str:
    return (
        f"{SCRIPT_MARKER}\n"
        "ScriptType: v4.00+\n"
        "Collisions: Normal\n"
        f"PlayResX: {style.play_res_x}\n"
        f"PlayResY: {style.play_res_y}\n"
        "ScaledBorderAndShadow: yes\n"
        "\n"
        "[V4+ Styles]\n"
        "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, "
        "BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, "
        "BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding\n"
        f"Style: Default,{style.font},{style.font_size},&H00FFFFFF,&H00FFFFFF,&H000000,"
        f"&H00000000,0,0,0,0,100,100,0,0,1,3,0,2,20,20,{style.margin_v},1\n"
        "\n"
        "[Events]\n"
        "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
    )


def _dialogue(start: float, end: float, text: str) -> str:
    return (
        f"Dialogue: 0,{format_ass_time(start)},{format_ass_time(end)},"
        f"Default,,0,0,0,,{{\\an2}}{text}"
    )


def group_lines(
    words: list[WordTiming],
    max_gap: float = LINE_GAP,
    max_chars: int = LINE_CHARS,
) -> list[list[WordTiming]]:
    """Split words into display lines on pauses and accumulated length."""
    lines: list[list[WordTiming]] = []
    buf: list[WordTiming] = []
    last_end = words[0].start if words else 0.0

    for word in words:
        gap = word.start - last_end
        line_chars = sum(len(w.text) + 1 for w in buf)
        if buf and (gap > max_gap or line_chars > max_chars):
            lines.append(buf)
            buf = []
        buf.append(word)
        last_end = word.end

    if buf:
        lines.append(buf)
    return lines


def build_karaoke_ass(
    words: list[WordTiming],
    orientation: Orientation = Orientation.VERTICAL,
) -> str:
    """Build a word-aligned karaoke script from real word timings.

    Each ``\\kf`` is the word's own duration rounded to centiseconds and
    floored at 1, so a line's summed highlight can exceed its on-screen span
    by at most one centisecond per word (only for near-zero-length words).
    """
    script = ass_header(KARAOKE_STYLES[Orientation.parse(orientation)])
    if not words:
        return script

    events: list[str] = []
    for line in group_lines(words):
        parts = []
        for w in line:
            dur_cs = max(1, round((w.end - w.start) * 100))
            parts.append(f"{{\\kf{dur_cs}}}{_escape_text(w.text)}")
        events.append(_dialogue(line[0].start, line[-1].end + KARAOKE_END_PAD, " ".join(parts)))

    return script + "\n".join(events) + "\n"


def build_approximate_ass(
    words: list[str],
    duration: float,
    orientation: Orientation = Orientation.VERTICAL,
) -> str:
    """Build a karaoke script assuming every word takes the same time.

    Used for synthesized narration, where only the total audio length is
    known. Timing is an estimate, not an alignment.
    """
    script = ass_header(NARRATION_STYLES[Orientation.parse(orientation)])
    if not words:
        return script

    total = max(MIN_TOTAL_DURATION, duration)
    per = max(MIN_WORD_DURATION, total / len(words))

    lines: list[tuple[float, float, list[str]]] = []
    t = 0.0
    buf: list[str] = []
    chars = 0
    for word in words:
        if chars + len(word) + 1 > APPROX_LINE_CHARS and buf:
            lines.append((max(0.0, t - per * len(buf)), t, buf))
            buf = []
            chars = 0
        buf.append(word)
        chars += len(word) + 1
        t += per
    if buf:
        lines.append((max(0.0, t - per * len(buf)), t, buf))

    events: list[str] = []
    for start, end, tokens in lines:
        each = max(1, round((end - start) / len(tokens) * 100))
        text = " ".join(f"{{\\kf{each}}}{_escape_text(tok)}" for tok in tokens)
        events.append(_dialogue(start, end + APPROX_END_PAD, text))

    return script + "\n".join(events) + "\n"


def parse_ass_events(script: str) -> list[AssEvent]:
    """Return the ``Dialogue`` events of a script, with times in seconds."""
    events: list[AssEvent] = []
    for line in script.splitlines():
        m = _DIALOGUE_RE.match(line)
        if not m:
            continue
        g = m.groups()
        start = int(g[0]) * 3600 + int(g[1]) * 60 + int(g[2]) + int(g[3]) / 100
        end = int(g[4]) * 3600 + int(g[5]) * 60 + int(g[6]) + int(g[7]) / 100
        events.append(AssEvent(start=start, end=end, text=g[8]))
    return events


def is_ass(text: str) -> bool:
    return text.lstrip().startswith(SCRIPT_MARKER)
