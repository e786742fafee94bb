import httpx

from toddler_ai.config import SpeechSynthesisConfig
from toddler_ai.exceptions import SynthesisError


class ElevenLabsClient:
    """Async client for the ElevenLabs text-to-speech endpoint."""

    def __init__(
        self,
        config: SpeechSynthesisConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def text_to_speech(self, text: str) -> bytes:
        """Return MP3 bytes for *text* spoken with the configured voice."""
        cfg = self._config
        url = f"{cfg.base_url}/text-to-speech/{cfg.voice_id}"
        payload = {
            "text": text,
            "model_id": cfg.model_id,
            "voice_settings": {
                "stability": cfg.stability,
                "similarity_boost": cfg.similarity_boost,
                "style": cfg.style,
                "use_speaker_boost": cfg.use_speaker_boost,
            },
        }
        headers = {
            "Accept": "audio/mpeg",
            "xi-api-key": cfg.api_key,
        }

        try:
            resp = await self._http.post(url, json=payload, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise SynthesisError("ElevenLabs request failed", e) from e

        if not resp.content:
            raise SynthesisError("ElevenLabs returned no audio")
        return resp.content

    async def aclose(self) -> None:
        await self._http.aclose()
