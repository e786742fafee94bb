from toddler_ai.clients.elevenlabs_client import ElevenLabsClient
from toddler_ai.clients.groq_client import GroqClient
from toddler_ai.clients.pixabay_client import PixabayClient

__all__ = ["ElevenLabsClient", "GroqClient", "PixabayClient"]
