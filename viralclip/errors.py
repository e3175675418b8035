"""Error taxonomy for the clip pipeline.

Every stage either returns its result or raises exactly one of these. The
``category`` attribute is what the HTTP layer reports next to the message so
operators can tell "install this tool" apart from "this file is bad".
"""

# Tail of tool output kept on errors
DETAIL_LIMIT = 500


class PipelineError(RuntimeError):
    category = "pipeline_error"

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail[-DETAIL_LIMIT:].strip() if detail else None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class ToolNotInstalled(PipelineError):
    """The executable could not be spawned at all."""

    category = "tool_not_installed"

    def __init__(self, tool: str, hint: str, detail: str | None = None):
        super().__init__(f"{tool} is not installed. {hint}", detail)
        self.tool = tool
        self.hint = hint


class ToolFailed(PipelineError):
    """The tool ran but exited non-zero."""

    category = "tool_failed"

    def __init__(self, tool: str, returncode: int, detail: str | None = None):
        super().__init__(f"{tool} exited with status {returncode}", detail)
        self.tool = tool
        self.returncode = returncode


class ToolTimeout(PipelineError):
    category = "tool_timeout"


class ToolOutputTooLarge(PipelineError):
    category = "tool_output_too_large"


class InvalidInput(PipelineError, ValueError):
    category = "invalid_input"


class InvalidRange(InvalidInput):
    category = "invalid_range"


class DurationUnavailable(PipelineError):
    category = "duration_unavailable"


class TranscriptionFailed(PipelineError):
    category = "transcription_failed"


class AudioExtractionFailed(TranscriptionFailed):
    category = "audio_extraction_failed"


class CutFailed(PipelineError):
    category = "cut_failed"


class BurnInFailed(PipelineError):
    category = "burn_in_failed"


class SynthesisFailed(PipelineError):
    category = "synthesis_failed"


class RenderFailed(PipelineError):
    category = "render_failed"


class UnparsableOracleResponse(PipelineError):
    category = "unparsable_oracle_response"


class ConfigurationMissing(PipelineError):
    """A required binary or model path was never configured."""

    category = "configuration_missing"


class SpeechEngineNotConfigured(ConfigurationMissing):
    category = "speech_engine_not_configured"


class DownloadFailed(PipelineError):
    category = "download_failed"
