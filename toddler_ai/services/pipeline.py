import asyncio
import logging
from collections.abc import Awaitable

from toddler_ai.config import ServiceConfig
from toddler_ai.exceptions import (
    EmptyCaptureError,
    GenerationError,
    ImageResolutionError,
    PipelineError,
    SynthesisError,
    ToddlerAIError,
    TranscriptionError,
)
from toddler_ai.models import AnswerBundle, PipelineStage, StagePolicy
from toddler_ai.services.answers import AnswerGenerator
from toddler_ai.services.images import FALLBACK_IMAGE_URL, ImageResolver
from toddler_ai.services.speech import NOTIFICATION_SOUND_URL, SpeechSynthesizer
from toddler_ai.services.transcription import Transcriber

logger = logging.getLogger(__name__)

IMAGE = "image"
SPEECH = "speech"

DEFAULT_TIMEOUTS = {
    PipelineStage.TRANSCRIBING: 30.0,
    PipelineStage.GENERATING: 30.0,
    IMAGE: 10.0,
    SPEECH: 30.0,
}


def default_policies(speech_failure_policy: str = "degrade") -> dict[str, StagePolicy]:
    """Failure policy per enrichment stage. The image stage always degrades."""
    speech = (
        StagePolicy.fatal()
        if speech_failure_policy == "fatal"
        else StagePolicy.fallback(NOTIFICATION_SOUND_URL)
    )
    return {IMAGE: StagePolicy.fallback(FALLBACK_IMAGE_URL), SPEECH: speech}


class Orchestrator:
    """Run one recorded question through the whole answer pipeline.

    Stages, strictly in order::

        RECEIVED -> TRANSCRIBING -> GENERATING -> ENRICHING -> COMPLETE

    Transcription and generation are fatal: their failure raises
    ``PipelineError`` and nothing downstream runs. Enrichment (image and
    speech, run concurrently) consults ``policies``. Nothing is retried and
    no state is kept between requests.
    """

    def __init__(
        self,
        transcriber: Transcriber,
        generator: AnswerGenerator,
        image_resolver: ImageResolver,
        synthesizer: SpeechSynthesizer,
        *,
        policies: dict[str, StagePolicy] | None = None,
        timeouts: dict | None = None,
    ) -> None:
        self.transcriber = transcriber
        self.generator = generator
        self.image_resolver = image_resolver
        self.synthesizer = synthesizer
        self.policies = {**default_policies(), **(policies or {})}
        self.timeouts = {**DEFAULT_TIMEOUTS, **(timeouts or {})}

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "Orchestrator":
        return cls(
            Transcriber(config.speech_to_text),
            AnswerGenerator(config.chat),
            ImageResolver(config.image_search),
            SpeechSynthesizer(config.speech_synthesis),
            policies=default_policies(config.speech_failure_policy),
            timeouts={
                PipelineStage.TRANSCRIBING: config.speech_to_text.timeout_seconds,
                PipelineStage.GENERATING: config.chat.timeout_seconds,
                IMAGE: config.image_search.timeout_seconds,
                SPEECH: config.speech_synthesis.timeout_seconds,
            },
        )

    async def aclose(self) -> None:
        await self.transcriber.groq.aclose()
        await self.generator.groq.aclose()
        await self.image_resolver.pixabay.aclose()
        await self.synthesizer.elevenlabs.aclose()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def run(self, audio: bytes, filename: str = "recording.wav") -> AnswerBundle:
        self._enter(PipelineStage.RECEIVED, audio_bytes=len(audio or b""))
        if not audio:
            self._fail(PipelineStage.RECEIVED, EmptyCaptureError())

        self._enter(PipelineStage.TRANSCRIBING)
        try:
            question = await self._timed(
                self.transcriber.transcribe(audio, filename),
                PipelineStage.TRANSCRIBING,
            )
        except asyncio.TimeoutError as e:
            self._fail(PipelineStage.TRANSCRIBING, TranscriptionError("speech-to-text timed out", e))
        except TranscriptionError as e:
            self._fail(PipelineStage.TRANSCRIBING, e)

        self._enter(PipelineStage.GENERATING)
        try:
            explanation = await self._timed(
                self.generator.generate(question),
                PipelineStage.GENERATING,
            )
        except asyncio.TimeoutError as e:
            self._fail(PipelineStage.GENERATING, GenerationError("answer generation timed out", e))
        except GenerationError as e:
            self._fail(PipelineStage.GENERATING, e)

        self._enter(PipelineStage.ENRICHING)
        image_url, audio_url = await asyncio.gather(
            self._enrich(IMAGE, self.image_resolver.resolve(question)),
            self._enrich(SPEECH, self.synthesizer.synthesize(explanation)),
        )

        bundle = AnswerBundle(
            question=question,
            explanation=explanation,
            image_url=image_url,
            audio_url=audio_url,
        )
        self._enter(PipelineStage.COMPLETE)
        return bundle

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _timed(self, coro: Awaitable, key):
        return await asyncio.wait_for(coro, timeout=self.timeouts[key])

    async def _enrich(self, name: str, coro: Awaitable) -> str:
        policy = self.policies[name]
        try:
            return await self._timed(coro, name)
        except (ToddlerAIError, asyncio.TimeoutError) as e:
            reason = str(e) or f"{name} timed out"
            if policy.is_fatal:
                if not isinstance(e, ToddlerAIError):
                    e = SynthesisError(reason, e) if name == SPEECH else ImageResolutionError(reason, e)
                self._fail(PipelineStage.ENRICHING, e)
            logger.warning(
                "Enrichment stage degraded",
                extra={"enrichment": name, "reason": reason, "fallback": policy.value},
            )
            return policy.value

    @staticmethod
    def _enter(stage: PipelineStage, **extra) -> None:
        logger.info("Pipeline stage", extra={"stage": stage.value, **extra})

    @staticmethod
    def _fail(stage: PipelineStage, error: ToddlerAIError):
        logger.error(
            "Pipeline failed",
            extra={"stage": stage.value, "reason": str(error), "error_type": type(error).__name__},
        )
        raise PipelineError(stage, str(error), error) from error
