from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class SpeechToTextConfig(BaseModel, frozen=True):
    """Groq Whisper transcription settings."""

    api_key: str
    model: str = "whisper-large-v3-turbo"
    language: str = "en"
    timeout_seconds: float = 30.0


class ChatConfig(BaseModel, frozen=True):
    """Groq chat completion settings."""

    api_key: str
    model: str = "llama-3.3-70b-versatile"
    max_tokens: int = 150
    temperature: float = 0.7
    timeout_seconds: float = 30.0


class ImageSearchConfig(BaseModel, frozen=True):
    """Pixabay image search settings."""

    api_key: str
    base_url: str = "https://pixabay.com/api/"
    image_type: str = "illustration"
    category: str = "education"
    min_width: int = 400
    per_page: int = 10
    timeout_seconds: float = 10.0


class SpeechSynthesisConfig(BaseModel, frozen=True):
    """ElevenLabs text-to-speech settings."""

    api_key: str
    base_url: str = "https://api.elevenlabs.io/v1"
    voice_id: str = "9BWtsMINqrJLrRacOk9x"
    model_id: str = "eleven_multilingual_v2"
    stability: float = 0.5
    similarity_boost: float = 0.8
    style: float = 0.2
    use_speaker_boost: bool = True
    timeout_seconds: float = 30.0


class ServiceConfig(BaseModel, frozen=True):
    """Everything the remote collaborators need, built once at startup."""

    speech_to_text: SpeechToTextConfig
    chat: ChatConfig
    image_search: ImageSearchConfig
    speech_synthesis: SpeechSynthesisConfig
    speech_failure_policy: Literal["degrade", "fatal"] = "degrade"


class Settings(BaseSettings):
    # Groq (Whisper + chat)
    groq_api_key: str = "gsk_placeholder"
    chat_model: str = "llama-3.3-70b-versatile"
    transcription_model: str = "whisper-large-v3-turbo"
    transcription_language: str = "en"

    # Pixabay
    pixabay_api_key: str = ""

    # ElevenLabs
    elevenlabs_api_key: str = ""
    elevenlabs_voice_id: str = "9BWtsMINqrJLrRacOk9x"
    elevenlabs_model: str = "eleven_multilingual_v2"

    # Pipeline
    speech_failure_policy: Literal["degrade", "fatal"] = "degrade"
    transcription_timeout_seconds: float = 30.0
    generation_timeout_seconds: float = 30.0
    image_timeout_seconds: float = 10.0
    speech_timeout_seconds: float = 30.0

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Client
    server_url: str = "http://127.0.0.1:8000"
    sample_rate: int = 16000
    max_record_seconds: int = 30

    model_config = {"env_file": ".env", "extra": "ignore"}

    def service_config(self) -> ServiceConfig:
        return ServiceConfig(
            speech_to_text=SpeechToTextConfig(
                api_key=self.groq_api_key,
                model=self.transcription_model,
                language=self.transcription_language,
                timeout_seconds=self.transcription_timeout_seconds,
            ),
            chat=ChatConfig(
                api_key=self.groq_api_key,
                model=self.chat_model,
                timeout_seconds=self.generation_timeout_seconds,
            ),
            image_search=ImageSearchConfig(
                api_key=self.pixabay_api_key,
                timeout_seconds=self.image_timeout_seconds,
            ),
            speech_synthesis=SpeechSynthesisConfig(
                api_key=self.elevenlabs_api_key,
                voice_id=self.elevenlabs_voice_id,
                model_id=self.elevenlabs_model,
                timeout_seconds=self.speech_timeout_seconds,
            ),
            speech_failure_policy=self.speech_failure_policy,
        )


settings = Settings()
