"""Tests for speech synthesis and the narrated-video renderer."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from conftest import writes_output

from viralclip.config import EncodingConfig
from viralclip.editors.ass import parse_ass_events
from viralclip.editors.narration import build_render_args, render_narrated_video
from viralclip.errors import (
    ConfigurationMissing,
    InvalidInput,
    RenderFailed,
    SynthesisFailed,
    ToolFailed,
)
from viralclip.models import Orientation, SynthResult
from viralclip.synth import PiperSynthesizer
from viralclip.toolpaths import PIPER


class FakeSynth:
    def __init__(self, duration=4.0):
        self.duration = duration
        self.calls = []

    def synthesize(self, text, out_dir):
        self.calls.append(text)
        wav = Path(out_dir) / "tts_fake.wav"
        wav.write_bytes(b"RIFF")
        return SynthResult(audio_path=wav, duration=self.duration)


# ---------------------------------------------------------------------------
# PiperSynthesizer
# ---------------------------------------------------------------------------


class TestPiperSynthesizer:
    @patch("viralclip.synth.ffutil.probe_duration", return_value=3.25)
    @patch("viralclip.synth.ffutil.run_tool")
    def test_text_on_stdin(self, mock_run, mock_probe, tmp_path):
        model = tmp_path / "pt_BR-voice.onnx"
        model.write_text("")
        mock_run.side_effect = writes_output()

        result = PiperSynthesizer(model).synthesize("  Olá mundo  ", tmp_path)

        tool, args = mock_run.call_args[0]
        assert tool is PIPER
        assert args[:2] == ["-m", str(model)]
        assert args[2] == "-f"
        assert mock_run.call_args.kwargs["input"] == "Olá mundo"
        assert result.duration == 3.25
        assert result.audio_path.exists()

    def test_empty_text(self, tmp_path):
        with pytest.raises(InvalidInput):
            PiperSynthesizer(tmp_path / "m.onnx").synthesize("   ", tmp_path)

    def test_model_from_env_missing(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PIPER_MODEL", raising=False)
        with pytest.raises(ConfigurationMissing):
            PiperSynthesizer().synthesize("oi", tmp_path)

    @patch("viralclip.synth.ffutil.run_tool")
    def test_tool_failure(self, mock_run, tmp_path):
        model = tmp_path / "voice.onnx"
        model.write_text("")
        mock_run.side_effect = ToolFailed("piper", 1, "bad model")
        with pytest.raises(SynthesisFailed, match="bad model"):
            PiperSynthesizer(model).synthesize("oi", tmp_path)

    @patch("viralclip.synth.ffutil.run_tool")
    def test_no_wav(self, mock_run, tmp_path):
        model = tmp_path / "voice.onnx"
        model.write_text("")
        mock_run.return_value = MagicMock(returncode=0)
        with pytest.raises(SynthesisFailed):
            PiperSynthesizer(model).synthesize("oi", tmp_path)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class TestBuildRenderArgs:
    def test_vertical_color_source(self, tmp_path):
        args = build_render_args(
            tmp_path / "a.wav", tmp_path / "o.ass", 4.5, Orientation.VERTICAL,
            "#0F0F10", tmp_path / "out.mp4", 22050, EncodingConfig(),
        )
        assert args[args.index("lavfi") + 2] == "color=c=0x0F0F10:s=1080x1920:r=30:d=4.500"
        assert args[args.index("-ar") + 1] == "22050"
        assert args[args.index("-movflags") + 1] == "+faststart"
        assert "1:a:0" in args

    def test_horizontal_size_and_named_color(self, tmp_path):
        args = build_render_args(
            tmp_path / "a.wav", tmp_path / "o.ass", 2, Orientation.HORIZONTAL,
            "black", tmp_path / "out.mp4", 16000, EncodingConfig(),
        )
        assert "color=c=black:s=1920x1080:r=30:d=2.000" in args


class TestRenderNarratedVideo:
    @patch("viralclip.editors.narration.ffutil.run_tool")
    def test_renders(self, mock_run, tmp_path, monkeypatch):
        monkeypatch.delenv("KEEP_SRT", raising=False)
        scripts = []

        def _run(tool, args, **kwargs):
            scripts.extend(p.read_text(encoding="utf-8") for p in tmp_path.glob("overlay_*.ass"))
            Path(args[-1]).write_bytes(b"video")
            return MagicMock(returncode=0)

        mock_run.side_effect = _run
        synth = FakeSynth(duration=4.0)

        result = render_narrated_video("um dois três quatro", "vertical", tmp_path, synthesizer=synth)

        assert result.output_path.name.startswith("ai_video_")
        assert result.output_path.exists()
        assert result.duration == 4.0
        assert synth.calls == ["um dois três quatro"]
        [event] = parse_ass_events(scripts[0])
        assert event.end == pytest.approx(4.02)
        assert not list(tmp_path.glob("overlay_*.ass"))

    def test_empty_text(self, tmp_path):
        with pytest.raises(InvalidInput):
            render_narrated_video("  ", Orientation.VERTICAL, tmp_path, synthesizer=FakeSynth())

    def test_bad_orientation(self, tmp_path):
        with pytest.raises(InvalidInput, match="horizontal"):
            render_narrated_video("oi", "square", tmp_path, synthesizer=FakeSynth())

    @patch("viralclip.editors.narration.ffutil.run_tool")
    def test_keep_overlay(self, mock_run, tmp_path, monkeypatch):
        monkeypatch.setenv("KEEP_SRT", "1")
        mock_run.side_effect = writes_output()
        render_narrated_video("oi", Orientation.HORIZONTAL, tmp_path, synthesizer=FakeSynth())
        assert len(list(tmp_path.glob("overlay_*.ass"))) == 1

    @patch("viralclip.editors.narration.ffutil.run_tool")
    def test_tool_failure(self, mock_run, tmp_path):
        mock_run.side_effect = ToolFailed("ffmpeg", 1, "No such filter: 'subtitles'")
        with pytest.raises(RenderFailed, match="subtitles"):
            render_narrated_video("oi", Orientation.VERTICAL, tmp_path, synthesizer=FakeSynth())

    @patch("viralclip.editors.narration.ffutil.run_tool")
    def test_missing_output(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0)
        with pytest.raises(RenderFailed):
            render_narrated_video("oi", Orientation.VERTICAL, tmp_path, synthesizer=FakeSynth())
