import numpy as np
import pytest

from toddler_ai.config import (
    ChatConfig,
    ImageSearchConfig,
    ServiceConfig,
    SpeechSynthesisConfig,
    SpeechToTextConfig,
)
from toddler_ai.exceptions import SubmissionError
from toddler_ai.models import AnswerBundle

BUNDLE = AnswerBundle(
    question="What is a rainbow?",
    explanation="A rainbow is colorful light in the sky! 🌈",
    image_url="https://cdn.pixabay.com/rainbow.png",
    audio_url="data:audio/mpeg;base64,AAAA",
)


@pytest.fixture
def service_config() -> ServiceConfig:
    return ServiceConfig(
        speech_to_text=SpeechToTextConfig(api_key="gsk_test"),
        chat=ChatConfig(api_key="gsk_test"),
        image_search=ImageSearchConfig(api_key="pixabay_test"),
        speech_synthesis=SpeechSynthesisConfig(api_key="eleven_test"),
    )


# ----------------------------------------------------------------------
# Fake Groq client
# ----------------------------------------------------------------------


class FakeGroq:
    def __init__(self, transcript: str = "", answer: str | None = "", error: Exception | None = None):
        self.transcript = transcript
        self.answer = answer
        self.error = error
        self.transcribe_calls: list[dict] = []
        self.chat_calls: list[dict] = []

    async def transcribe(self, audio, filename, *, model, language=None):
        self.transcribe_calls.append(
            {"audio": audio, "filename": filename, "model": model, "language": language}
        )
        if self.error:
            raise self.error
        return self.transcript

    async def chat(self, messages, *, model, temperature=None, max_tokens=None):
        self.chat_calls.append(
            {"messages": messages, "model": model, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.error:
            raise self.error
        return self.answer

    async def aclose(self):
        pass


# ----------------------------------------------------------------------
# Fake Pixabay client
# ----------------------------------------------------------------------


class FakePixabay:
    def __init__(self, *responses):
        # one entry per call: a list of URLs or an exception
        self.responses = list(responses)
        self.calls: list[tuple[str, str | None]] = []

    async def search(self, query, *, category=None):
        self.calls.append((query, category))
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self):
        pass


# ----------------------------------------------------------------------
# Client-side fakes
# ----------------------------------------------------------------------


class FakeInputStream:
    """Stands in for sounddevice.InputStream."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.callback = kwargs["callback"]
        self.finished_callback = kwargs["finished_callback"]
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def stop(self):
        self.started = False
        self.finished_callback()

    def close(self):
        self.closed = True

    def feed(self, frames: int = 1024, value: float = 0.1):
        block = np.full((frames, 1), value, dtype=np.float32)
        self.callback(block, frames, None, None)


class FakeStreamFactory:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.streams: list[FakeInputStream] = []

    def __call__(self, **kwargs):
        if self.error:
            raise self.error
        stream = FakeInputStream(**kwargs)
        self.streams.append(stream)
        return stream


class FakeAskClient:
    def __init__(self, bundle: AnswerBundle = BUNDLE, error: Exception | None = None):
        self.bundle = bundle
        self.error = error
        self.submissions: list[bytes] = []

    async def submit(self, audio: bytes, filename: str = "recording.wav") -> AnswerBundle:
        self.submissions.append(audio)
        if self.error:
            raise self.error
        return self.bundle

    async def aclose(self):
        pass


class FakeOutput:
    def __init__(self, samples, sample_rate, on_finished):
        self.samples = samples
        self.sample_rate = sample_rate
        self.on_finished = on_finished
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True
        self.on_finished()


class FakeOutputFactory:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.outputs: list[FakeOutput] = []

    def __call__(self, samples, sample_rate, on_finished):
        if self.error:
            raise self.error
        output = FakeOutput(samples, sample_rate, on_finished)
        self.outputs.append(output)
        return output


@pytest.fixture
def stream_factory() -> FakeStreamFactory:
    return FakeStreamFactory()


@pytest.fixture
def ask_client() -> FakeAskClient:
    return FakeAskClient()


@pytest.fixture
def output_factory() -> FakeOutputFactory:
    return FakeOutputFactory()


@pytest.fixture
def failing_ask_client() -> FakeAskClient:
    return FakeAskClient(error=SubmissionError("Server returned 502", details="no speech detected"))
