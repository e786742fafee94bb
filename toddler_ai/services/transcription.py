import logging

from groq import APIError

from toddler_ai.clients import GroqClient
from toddler_ai.config import SpeechToTextConfig
from toddler_ai.exceptions import TranscriptionError

logger = logging.getLogger(__name__)

MIN_QUESTION_LENGTH = 2


class Transcriber:
    """Turn one recorded question into text via Whisper on Groq.

    A transcript shorter than two characters after trimming is treated as
    "no speech detected" and raised, never replaced by a guess.
    """

    def __init__(self, config: SpeechToTextConfig, groq: GroqClient | None = None) -> None:
        self.config = config
        self.groq = groq or GroqClient(config.api_key, timeout=config.timeout_seconds)

    async def transcribe(self, audio: bytes, filename: str = "recording.wav") -> str:
        try:
            raw = await self.groq.transcribe(
                audio,
                filename,
                model=self.config.model,
                language=self.config.language,
            )
        except APIError as e:
            raise TranscriptionError(f"speech-to-text request failed: {e}", e) from e

        question = (raw or "").strip()
        if len(question) < MIN_QUESTION_LENGTH:
            raise TranscriptionError("no speech detected")

        logger.info("Question transcribed", extra={"question_length": len(question)})
        return question
