"""Tests for SRT repair and normalization."""

from viralclip.editors.srt import (
    format_srt_time,
    normalize_srt,
    parse_srt,
    render_srt,
    srt_timestamp_to_seconds,
)
from viralclip.models import SubtitleBlock

MESSY = (
    "```srt\r\n"
    "1\r\n"
    "00:00:01.5 -> 00:00:03\r\n"
    "Olá mundo\r\n"
    "\r\n"
    "7\r\n"
    "00:00:05,000 —> 00:00:07,25\r\n"
    "Segundo bloco\r\n"
    "```\r\n"
)

CLEAN = (
    "1\n00:00:01,500 --> 00:00:03,000\nOlá mundo\n\n"
    "2\n00:00:05,000 --> 00:00:07,250\nSegundo bloco\n"
)


class TestTimestamps:
    def test_format(self):
        assert format_srt_time(3725.5) == "01:02:05,500"

    def test_format_rounds_to_ms(self):
        assert format_srt_time(1.0004) == "00:00:01,000"
        assert format_srt_time(1.9996) == "00:00:02,000"

    def test_negative_clamped(self):
        assert format_srt_time(-3) == "00:00:00,000"

    def test_parse(self):
        assert srt_timestamp_to_seconds("01:02:05,500") == 3725.5


class TestNormalizeSrt:
    def test_repairs_messy_output(self):
        assert normalize_srt(MESSY) == CLEAN

    def test_idempotent(self):
        assert normalize_srt(CLEAN) == CLEAN
        assert normalize_srt(normalize_srt(MESSY)) == normalize_srt(MESSY)

    def test_no_time_range(self):
        assert normalize_srt("I could not transcribe this clip.") == ""

    def test_blank(self):
        assert normalize_srt("") == ""
        assert normalize_srt("  \n ") == ""

    def test_drops_empty_and_backwards_blocks(self):
        raw = (
            "1\n00:00:01,000 --> 00:00:02,000\n\n\n"
            "2\n00:00:05,000 --> 00:00:04,000\nbackwards\n\n"
            "3\n00:00:06,000 --> 00:00:08,000\nkept\n"
        )
        assert normalize_srt(raw) == "1\n00:00:06,000 --> 00:00:08,000\nkept\n"

    def test_en_dash_and_comma_fraction(self):
        out = normalize_srt("00:00:00,1 –> 00:00:01,2\nhi")
        assert out == "1\n00:00:00,100 --> 00:00:01,200\nhi\n"

    def test_multiline_text_kept(self):
        out = normalize_srt("1\n00:00:00,000 --> 00:00:02,000\nline one\nline two\n")
        assert "line one\nline two" in out


class TestParseRender:
    def test_reindexes(self):
        blocks = parse_srt("9\n00:00:00,000 --> 00:00:01,000\na\n\n4\n00:00:01,000 --> 00:00:02,000\nb\n")
        assert [b.index for b in blocks] == [1, 2]
        assert [b.text for b in blocks] == ["a", "b"]

    def test_render_empty(self):
        assert render_srt([]) == ""

    def test_render(self):
        out = render_srt([SubtitleBlock(index=5, start=0.0, end=1.25, text="oi")])
        assert out == "1\n00:00:00,000 --> 00:00:01,250\noi\n"
