"""Gateway configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.meeting_gateway.gateway.schemas import Voice


class Environment(str, Enum):
    development = "development"
    production = "production"


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables and .env file.

    Credentials are read once at startup. Which of them are present decides
    the upstream mode (see gateway.selector).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # MCP server identity
    SERVER_NAME: str = "groupthink-meeting"
    SERVER_VERSION: str = "0.1.0"

    # Hosted mode -- single bearer token for the Groupthink platform
    GROUPTHINK_TOKEN: str = ""
    GROUPTHINK_API: str = "https://app.groupthink.com"

    # Direct mode -- Recall.ai bot platform + OpenAI speech synthesis
    RECALL_TOKEN: str = Field(
        default="",
        validation_alias=AliasChoices("RECALL_TOKEN", "RECALLAI_TOKEN"),
    )
    RECALL_API_BASE: str = "https://api.recall.ai/api/v1"
    OPENAI_KEY: str = Field(
        default="",
        validation_alias=AliasChoices("OPENAI_KEY", "OPENAI_API_KEY"),
    )
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    TTS_MODEL: str = "tts-1"
    TTS_SPEED: float = 1.0

    # Bot creation options (Direct mode)
    TRANSCRIPTION_PROVIDER: str = "deepgram"
    TRANSCRIPT_WEBHOOK_URL: str = ""  # Optional real-time transcription destination
    JOIN_CHAT_GREETING: bool = True

    # Tool defaults
    DEFAULT_BOT_NAME: str = "Agent"
    DEFAULT_VOICE: Voice = Voice.NOVA

    # Timeouts (seconds)
    TIMEOUT_DEFAULT: float = 30.0  # bot management, chat, status
    TIMEOUT_SYNTHESIS: float = 60.0  # speech synthesis

    # Retry policy
    RETRY_BACKOFF_SECONDS: float = 2.0  # speak / send_chat single retry
    READ_RETRY_ATTEMPTS: int = 3  # transcript / status reads

    # Rough speaking-rate heuristic used when upstream gives no duration
    SPEECH_SECONDS_PER_CHAR: float = 0.065

    # Shutdown fan-out
    SHUTDOWN_TIMEOUT: float = 35.0
    SHUTDOWN_CONCURRENCY: int = 10


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
