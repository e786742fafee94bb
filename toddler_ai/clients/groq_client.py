from groq import AsyncGroq


class GroqClient:
    """Async wrapper around the official Groq SDK.

    Covers the two Groq endpoints the pipeline needs::

        groq = GroqClient(api_key, timeout=30)
        text = await groq.transcribe(wav_bytes, "recording.wav", model="whisper-large-v3-turbo")
        answer = await groq.chat(messages, model="llama-3.3-70b-versatile")

    SDK exceptions (``groq.APIError`` and subclasses) propagate unchanged;
    the services translate them into pipeline errors.
    """

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float | None = None,
        client: AsyncGroq | None = None,
    ) -> None:
        if client is None:
            kwargs: dict = {"api_key": api_key, "max_retries": 0}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = AsyncGroq(**kwargs)
        self._client = client

    # ------------------------------------------------------------------
    # Speech-to-text
    # ------------------------------------------------------------------
    async def transcribe(
        self,
        audio: bytes,
        filename: str,
        *,
        model: str,
        language: str | None = None,
    ) -> str:
        """Plain-text Whisper transcription. Returns the raw transcript."""
        kwargs: dict = {
            "file": (filename, audio),
            "model": model,
            "response_format": "text",
        }
        if language is not None:
            kwargs["language"] = language

        resp = await self._client.audio.transcriptions.create(**kwargs)
        # response_format="text" yields a bare string on current SDKs
        if isinstance(resp, str):
            return resp
        return resp.text or ""

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------
    async def chat(
        self,
        messages: list[dict],
        *,
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | None:
        """Plain-text chat completion. Returns the first choice's content."""
        kwargs: dict = {
            "model": model,
            "messages": messages,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        resp = await self._client.chat.completions.create(**kwargs)
        if not resp.choices:
            return None
        return resp.choices[0].message.content

    async def aclose(self) -> None:
        await self._client.close()
