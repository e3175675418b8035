"""Tests for parsing the segment/subtitle oracle's answers."""

from unittest.mock import MagicMock

import pytest

from viralclip.analyzers.oracle import (
    parse_segment_proposals,
    parse_subtitle_response,
    propose_segments,
)
from viralclip.errors import UnparsableOracleResponse


class TestParseSegmentProposals:
    def test_plain_json(self):
        text = '[{"startTime": 12, "endTime": 95.5, "description": "Strong hook"}]'
        [seg] = parse_segment_proposals(text)
        assert (seg.start, seg.end, seg.reason) == (12.0, 95.5, "Strong hook")

    def test_fenced_json(self):
        text = '```json\n[{"startTime": "0", "endTime": "75"}]\n```'
        [seg] = parse_segment_proposals(text)
        assert (seg.start, seg.end, seg.reason) == (0.0, 75.0, "")

    def test_not_json(self):
        with pytest.raises(UnparsableOracleResponse):
            parse_segment_proposals("Here are some great moments!")

    def test_not_a_list(self):
        with pytest.raises(UnparsableOracleResponse):
            parse_segment_proposals('{"startTime": 0, "endTime": 70}')

    def test_missing_times(self):
        with pytest.raises(UnparsableOracleResponse):
            parse_segment_proposals('[{"description": "no times"}]')

    def test_none(self):
        with pytest.raises(UnparsableOracleResponse):
            parse_segment_proposals(None)


class TestProposeSegments:
    def test_validates_proposals(self, source_video):
        oracle = MagicMock()
        oracle.propose_segments.return_value = (
            '[{"startTime": 10, "endTime": 100, "description": "a"},'
            ' {"startTime": 0, "endTime": 20, "description": "too short"}]'
        )
        segs = propose_segments(oracle, source_video, 150.0)
        assert [(s.start, s.end) for s in segs] == [(10, 100)]
        oracle.propose_segments.assert_called_once_with(source_video, 150.0)

    def test_garbage_answer_falls_back_to_uniform(self, source_video):
        oracle = MagicMock()
        oracle.propose_segments.return_value = "I cannot help with that."
        segs = propose_segments(oracle, source_video, 200.0)
        assert [(s.start, s.end) for s in segs] == [(0, 90), (90, 180)]


class TestParseSubtitleResponse:
    def test_normalizes(self):
        out = parse_subtitle_response("1\n00:00:00.5 -> 00:00:02\nOi\n")
        assert out == "1\n00:00:00,500 --> 00:00:02,000\nOi\n"

    def test_no_ranges_means_empty(self):
        assert parse_subtitle_response("Sorry, no speech detected.") == ""

    def test_non_string(self):
        with pytest.raises(UnparsableOracleResponse):
            parse_subtitle_response(None)
