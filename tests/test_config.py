"""Tests for environment settings and encoder presets."""

from pathlib import Path

from viralclip.config import KARAOKE_STYLES, NARRATION_STYLES, EncodingConfig, ToolSettings
from viralclip.models import Orientation


class TestToolSettings:
    def test_empty_environment(self):
        s = ToolSettings.from_env({})
        assert s.whisper_model is None
        assert s.piper_model is None
        assert s.piper_sample_rate == 22050
        assert s.keep_subtitle_files is False

    def test_values(self):
        s = ToolSettings.from_env({
            "WHISPER_CPP_MODEL": "/models/ggml-base.bin",
            "PIPER_MODEL": "/voices/pt_BR.onnx",
            "PIPER_SAMPLE_RATE": "16000",
            "KEEP_SRT": "1",
        })
        assert s.whisper_model == Path("/models/ggml-base.bin")
        assert s.piper_model == Path("/voices/pt_BR.onnx")
        assert s.piper_sample_rate == 16000
        assert s.keep_subtitle_files is True

    def test_bad_sample_rate(self):
        assert ToolSettings.from_env({"PIPER_SAMPLE_RATE": "fast"}).piper_sample_rate == 22050

    def test_keep_srt_only_for_one(self):
        assert ToolSettings.from_env({"KEEP_SRT": "true"}).keep_subtitle_files is False

    def test_reads_process_env(self, monkeypatch):
        monkeypatch.setenv("WHISPER_CPP_MODEL", "/tmp/m.bin")
        assert ToolSettings.from_env().whisper_model == Path("/tmp/m.bin")


class TestEncodingConfig:
    def test_defaults(self):
        args = EncodingConfig().args()
        assert args == [
            "-c:v", "libx264", "-preset", "fast", "-crf", "23",
            "-c:a", "aac", "-b:a", "128k", "-movflags", "+faststart",
        ]

    def test_custom(self):
        args = EncodingConfig(crf=18, preset="slow").args()
        assert args[args.index("-crf") + 1] == "18"
        assert args[args.index("-preset") + 1] == "slow"


def test_styles_match_frame_size():
    for styles in (KARAOKE_STYLES, NARRATION_STYLES):
        assert (styles[Orientation.VERTICAL].play_res_x, styles[Orientation.VERTICAL].play_res_y) == (1080, 1920)
        assert (styles[Orientation.HORIZONTAL].play_res_x, styles[Orientation.HORIZONTAL].play_res_y) == (1920, 1080)
