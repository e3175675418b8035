"""Speech synthesis via the Piper command-line tool."""

import logging
from pathlib import Path
from typing import Protocol

from viralclip import ffutil
from viralclip.config import SYNTH_TIMEOUT, ToolSettings
from viralclip.errors import ConfigurationMissing, InvalidInput, SynthesisFailed, ToolFailed
from viralclip.models import SynthResult
from viralclip.toolpaths import PIPER

logger = logging.getLogger(__name__)


class Synthesizer(Protocol):
    def synthesize(self, text: str, out_dir: Path) -> SynthResult:
        """Render *text* to a waveform in *out_dir*."""


class PiperSynthesizer:
    """Runs ``piper -m MODEL -f OUT.wav`` with the text on stdin."""

    def __init__(self, voice_model: Path | None = None):
        self.voice_model = Path(voice_model) if voice_model else None

    def synthesize(self, text: str, out_dir: Path) -> SynthResult:
        text = (text or "").strip()
        if not text:
            raise InvalidInput("Empty text for speech synthesis")

        model = self.voice_model or ToolSettings.from_env().piper_model
        if model is None or not model.exists():
            raise ConfigurationMissing(
                "Piper voice model not found. Set PIPER_MODEL to the model path"
            )

        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        wav_path = out_dir / ffutil.unique_name("tts", ".wav")

        logger.info("Synthesizing %d chars with %s", len(text), model.name)
        try:
            ffutil.run_tool(
                PIPER,
                ["-m", str(model), "-f", str(wav_path)],
                timeout=SYNTH_TIMEOUT,
                input=text,
            )
        except ToolFailed as e:
            raise SynthesisFailed("Failed to generate audio with Piper", e.detail) from e

        if not wav_path.exists():
            raise SynthesisFailed("Failed to generate audio with Piper")

        return SynthResult(audio_path=wav_path, duration=ffutil.probe_duration(wav_path))
