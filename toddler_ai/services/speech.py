import logging

from toddler_ai.clients import ElevenLabsClient
from toddler_ai.config import SpeechSynthesisConfig
from toddler_ai.services.audio_codec import encode_data_url

logger = logging.getLogger(__name__)

# Played instead of the spoken answer when synthesis degrades.
NOTIFICATION_SOUND_URL = "https://www.soundjay.com/misc/sounds/bell-ringing-05.wav"


class SpeechSynthesizer:
    """Speak the answer with ElevenLabs and return it as an inline data URL."""

    def __init__(
        self,
        config: SpeechSynthesisConfig,
        elevenlabs: ElevenLabsClient | None = None,
    ) -> None:
        self.config = config
        self.elevenlabs = elevenlabs or ElevenLabsClient(config)

    async def synthesize(self, answer: str) -> str:
        """Raises ``SynthesisError`` on any failure; the pipeline decides what that means."""
        audio = await self.elevenlabs.text_to_speech(answer)
        logger.info("Answer synthesized", extra={"audio_bytes": len(audio)})
        return encode_data_url(audio, "audio/mpeg")
