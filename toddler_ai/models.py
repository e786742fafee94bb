from dataclasses import asdict, dataclass
from enum import Enum


@dataclass(frozen=True)
class AnswerBundle:
    question: str
    explanation: str
    image_url: str
    audio_url: str

    def to_dict(self) -> dict:
        return asdict(self)


class PipelineStage(str, Enum):
    RECEIVED = "received"
    TRANSCRIBING = "transcribing"
    GENERATING = "generating"
    ENRICHING = "enriching"
    COMPLETE = "complete"
    FAILED = "failed"


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"


class PolicyKind(str, Enum):
    FATAL = "fatal"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class StagePolicy:
    """What the pipeline does when an enrichment stage fails.

    ``FATAL`` aborts the request; ``FALLBACK`` substitutes ``value``.
    """

    kind: PolicyKind
    value: str | None = None

    @classmethod
    def fatal(cls) -> "StagePolicy":
        return cls(PolicyKind.FATAL)

    @classmethod
    def fallback(cls, value: str) -> "StagePolicy":
        return cls(PolicyKind.FALLBACK, value)

    @property
    def is_fatal(self) -> bool:
        return self.kind is PolicyKind.FATAL
