import logging

import httpx

from toddler_ai.exceptions import SubmissionError
from toddler_ai.models import AnswerBundle

logger = logging.getLogger(__name__)

ASK_ENDPOINT = "/ask"
BUNDLE_FIELDS = ("question", "explanation", "image_url", "audio_url")


class AskClient:
    """Submit one recorded question to the server and return its AnswerBundle.

    The whole pipeline runs server-side and can take a while, so the default
    timeout is generous. There is no cancellation once submitted.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def submit(self, audio: bytes, filename: str = "recording.wav") -> AnswerBundle:
        files = {"audio_file": (filename, audio, "audio/wav")}
        try:
            resp = await self._http.post(f"{self.base_url}{ASK_ENDPOINT}", files=files)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Server unreachable: %s", e)
            raise SubmissionError("Could not reach the server", cause=e) from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if resp.is_error:
            raise SubmissionError(
                data.get("error") or f"Server returned {resp.status_code}",
                details=data.get("details"),
            )

        missing = [f for f in BUNDLE_FIELDS if not isinstance(data.get(f), str)]
        if missing:
            raise SubmissionError(f"Malformed answer, missing {', '.join(missing)}")

        return AnswerBundle(**{f: data[f] for f in BUNDLE_FIELDS})

    async def aclose(self) -> None:
        await self._http.aclose()
