import asyncio

import pytest

from toddler_ai.exceptions import (
    GenerationError,
    ImageResolutionError,
    PipelineError,
    SynthesisError,
    TranscriptionError,
)
from toddler_ai.models import PipelineStage, StagePolicy
from toddler_ai.services.images import FALLBACK_IMAGE_URL, ImageResolver
from toddler_ai.services.pipeline import IMAGE, SPEECH, Orchestrator, default_policies
from toddler_ai.services.speech import NOTIFICATION_SOUND_URL
from toddler_ai.services.transcription import Transcriber

from .conftest import FakeGroq, FakePixabay


class Recorder:
    """Collects the order in which pipeline collaborators are called."""

    def __init__(self):
        self.calls: list[str] = []


class FakeTranscriber:
    def __init__(self, recorder, question="What is a rainbow?", error=None, delay=0.0):
        self.recorder, self.question, self.error, self.delay = recorder, question, error, delay

    async def transcribe(self, audio, filename="recording.wav"):
        self.recorder.calls.append("transcribe")
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.question


class FakeGenerator:
    def __init__(self, recorder, answer="Rainbows are light and color! 🌈", error=None):
        self.recorder, self.answer, self.error = recorder, answer, error

    async def generate(self, question):
        self.recorder.calls.append("generate")
        if self.error:
            raise self.error
        return self.answer


class FakeImageResolver:
    def __init__(self, recorder, url="https://cdn.pixabay.com/rainbow.png"):
        self.recorder, self.url = recorder, url

    async def resolve(self, question):
        self.recorder.calls.append("image")
        return self.url


class FakeSynthesizer:
    def __init__(self, recorder, error=None, delay=0.0):
        self.recorder, self.error, self.delay = recorder, error, delay

    async def synthesize(self, answer):
        self.recorder.calls.append("speech")
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return "data:audio/mpeg;base64,SUQz"


def build(
    recorder=None,
    *,
    transcriber=None,
    generator=None,
    image_resolver=None,
    synthesizer=None,
    policies=None,
    timeouts=None,
):
    recorder = recorder or Recorder()
    return Orchestrator(
        transcriber or FakeTranscriber(recorder),
        generator or FakeGenerator(recorder),
        image_resolver or FakeImageResolver(recorder),
        synthesizer or FakeSynthesizer(recorder),
        policies=policies,
        timeouts=timeouts,
    )


async def test_rainbow_question_completes_with_all_fields():
    recorder = Recorder()
    bundle = await build(recorder).run(b"RIFF" + b"\x00" * 96000)

    assert bundle.question == "What is a rainbow?"
    assert "light" in bundle.explanation and "color" in bundle.explanation
    assert bundle.image_url.startswith("https://") and "error" not in bundle.image_url
    assert bundle.audio_url.startswith("data:audio/mpeg;base64,")
    assert recorder.calls[:2] == ["transcribe", "generate"]
    assert sorted(recorder.calls[2:]) == ["image", "speech"]


async def test_empty_audio_fails_without_remote_calls():
    recorder = Recorder()
    with pytest.raises(PipelineError) as exc_info:
        await build(recorder).run(b"")

    assert exc_info.value.stage is PipelineStage.RECEIVED
    assert exc_info.value.reason == "no audio"
    assert recorder.calls == []


async def test_empty_transcript_stops_before_generation():
    recorder = Recorder()
    transcriber = FakeTranscriber(recorder, error=TranscriptionError("no speech detected"))

    with pytest.raises(PipelineError) as exc_info:
        await build(recorder, transcriber=transcriber).run(b"RIFF")

    assert exc_info.value.stage is PipelineStage.TRANSCRIBING
    assert exc_info.value.reason == "no speech detected"
    assert isinstance(exc_info.value.cause, TranscriptionError)
    assert recorder.calls == ["transcribe"]


async def test_silent_recording_never_reaches_later_stages(service_config):
    recorder = Recorder()
    groq = FakeGroq(transcript="")
    transcriber = Transcriber(service_config.speech_to_text, groq)

    with pytest.raises(PipelineError) as exc_info:
        await build(recorder, transcriber=transcriber).run(b"RIFF")

    assert exc_info.value.stage is PipelineStage.TRANSCRIBING
    assert exc_info.value.reason == "no speech detected"
    assert len(groq.transcribe_calls) == 1
    assert recorder.calls == []


async def test_no_image_hits_still_completes(service_config):
    recorder = Recorder()
    pixabay = FakePixabay([], [])
    resolver = ImageResolver(service_config.image_search, pixabay)

    bundle = await build(recorder, image_resolver=resolver).run(b"RIFF")

    assert bundle.image_url == FALLBACK_IMAGE_URL
    assert bundle.audio_url.startswith("data:audio/mpeg;base64,")
    assert len(pixabay.calls) == 2


async def test_image_search_outage_still_completes(service_config):
    pixabay = FakePixabay(ImageResolutionError("Pixabay search failed", ConnectionError("down")))
    resolver = ImageResolver(service_config.image_search, pixabay)

    bundle = await build(image_resolver=resolver).run(b"RIFF")

    assert bundle.image_url == FALLBACK_IMAGE_URL
    assert bundle.explanation


def test_partial_policy_table_keeps_defaults():
    orchestrator = build(policies={SPEECH: StagePolicy.fatal()})

    assert orchestrator.policies[SPEECH].is_fatal
    assert orchestrator.policies[IMAGE] == StagePolicy.fallback(FALLBACK_IMAGE_URL)


async def test_partial_policy_table_runs_image_fallback(service_config):
    resolver = ImageResolver(service_config.image_search, FakePixabay([], []))
    orchestrator = build(image_resolver=resolver, policies={SPEECH: StagePolicy.fatal()})

    bundle = await orchestrator.run(b"RIFF")

    assert bundle.image_url == FALLBACK_IMAGE_URL


async def test_generation_failure_is_fatal():
    recorder = Recorder()
    generator = FakeGenerator(recorder, error=GenerationError("language model returned no answer"))

    with pytest.raises(PipelineError) as exc_info:
        await build(recorder, generator=generator).run(b"RIFF")

    assert exc_info.value.stage is PipelineStage.GENERATING
    assert recorder.calls == ["transcribe", "generate"]


async def test_speech_failure_degrades_by_default():
    recorder = Recorder()
    synthesizer = FakeSynthesizer(recorder, error=SynthesisError("ElevenLabs request failed"))

    bundle = await build(recorder, synthesizer=synthesizer).run(b"RIFF")

    assert bundle.audio_url == NOTIFICATION_SOUND_URL
    assert bundle.explanation


async def test_speech_failure_is_fatal_under_strict_policy():
    recorder = Recorder()
    synthesizer = FakeSynthesizer(recorder, error=SynthesisError("ElevenLabs request failed"))

    with pytest.raises(PipelineError) as exc_info:
        await build(
            recorder, synthesizer=synthesizer, policies=default_policies("fatal")
        ).run(b"RIFF")

    assert exc_info.value.stage is PipelineStage.ENRICHING
    assert isinstance(exc_info.value.cause, SynthesisError)


async def test_stage_timeout_counts_as_failure():
    recorder = Recorder()
    transcriber = FakeTranscriber(recorder, delay=1.0)

    with pytest.raises(PipelineError) as exc_info:
        await build(
            recorder, transcriber=transcriber, timeouts={PipelineStage.TRANSCRIBING: 0.01}
        ).run(b"RIFF")

    assert exc_info.value.stage is PipelineStage.TRANSCRIBING
    assert "timed out" in exc_info.value.reason
    assert "generate" not in recorder.calls


async def test_slow_speech_falls_back_to_notification_sound():
    recorder = Recorder()
    synthesizer = FakeSynthesizer(recorder, delay=1.0)

    bundle = await build(recorder, synthesizer=synthesizer, timeouts={SPEECH: 0.01}).run(b"RIFF")
    assert bundle.audio_url == NOTIFICATION_SOUND_URL


def test_default_policy_table():
    policies = default_policies()
    assert policies[IMAGE] == StagePolicy.fallback(FALLBACK_IMAGE_URL)
    assert policies[SPEECH] == StagePolicy.fallback(NOTIFICATION_SOUND_URL)
    assert default_policies("fatal")[SPEECH].is_fatal
    assert not default_policies("fatal")[IMAGE].is_fatal


def test_from_config_wires_policy_and_timeouts(service_config):
    strict = service_config.model_copy(update={"speech_failure_policy": "fatal"})
    orchestrator = Orchestrator.from_config(strict)

    assert orchestrator.policies[SPEECH].is_fatal
    assert orchestrator.timeouts[IMAGE] == 10.0
    assert orchestrator.timeouts[PipelineStage.TRANSCRIBING] == 30.0
