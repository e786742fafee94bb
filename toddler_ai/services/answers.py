import logging

from groq import APIError

from toddler_ai.clients import GroqClient
from toddler_ai.config import ChatConfig
from toddler_ai.exceptions import GenerationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a cheerful, educational AI assistant for toddlers. "
    "Explain things in simple, fun language that a 2-4 year old can understand. "
    "Use emojis and keep responses short (2-3 sentences). "
    "Always be positive and encouraging!"
)


class AnswerGenerator:
    """Generate a short, toddler-friendly explanation via the Groq API."""

    def __init__(self, config: ChatConfig, groq: GroqClient | None = None) -> None:
        self.config = config
        self.groq = groq or GroqClient(config.api_key, timeout=config.timeout_seconds)

    async def generate(self, question: str) -> str:
        """Answer *question*. Raises ``GenerationError`` when nothing comes back."""
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": question},
        ]
        try:
            content = await self.groq.chat(
                messages,
                model=self.config.model,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except APIError as e:
            raise GenerationError(f"chat completion failed: {e}", e) from e

        answer = (content or "").strip()
        if not answer:
            raise GenerationError("language model returned no answer")

        logger.info("Answer generated", extra={"answer_length": len(answer)})
        return answer
