"""Error taxonomy shared by the server pipeline and the recording client."""


class ToddlerAIError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class CaptureError(ToddlerAIError):
    """Raised when the microphone cannot be opened or fails mid-recording."""


class EmptyCaptureError(ToddlerAIError):
    """Raised when a recording finished without any audio."""

    def __init__(self, message: str = "no audio"):
        super().__init__(message)


class TranscriptionError(ToddlerAIError):
    """Raised when speech-to-text fails or hears nothing usable."""


class GenerationError(ToddlerAIError):
    """Raised when the language model produces no answer."""


class SynthesisError(ToddlerAIError):
    """Raised when text-to-speech fails."""


class ImageResolutionError(ToddlerAIError):
    """Raised by the image search client. Never leaves ImageResolver."""


class PlaybackError(ToddlerAIError):
    """Raised when an answer cannot be played back."""


class SubmissionError(ToddlerAIError):
    """Raised by the client when the server could not answer a question.

    ``details`` carries the server's ``details`` field when there was one.
    """

    def __init__(self, message: str, details: str | None = None, cause: Exception | None = None):
        self.details = details
        super().__init__(message, cause)


class PipelineError(ToddlerAIError):
    """Raised when a fatal pipeline stage fails.

    ``stage`` is the ``PipelineStage`` that failed, ``reason`` a short
    human-readable description suitable for the ``details`` response field.
    """

    def __init__(self, stage, reason: str, cause: Exception | None = None):
        self.stage = stage
        self.reason = reason
        super().__init__(f"{stage.value} failed: {reason}", cause)
