"""Startup mode selection.

Hosted credentials win when present, even alongside Direct credentials.
Direct mode needs both of its credentials. Anything else is a fatal
configuration error raised before the server accepts tool calls.
"""

from __future__ import annotations

import structlog

from src.meeting_gateway.config import Settings
from src.meeting_gateway.core.errors import StartupConfigurationError
from src.meeting_gateway.gateway.backend import MeetingBackend
from src.meeting_gateway.gateway.direct import DirectBackend
from src.meeting_gateway.gateway.hosted import HostedBackend
from src.meeting_gateway.gateway.openai_tts import OpenAITTS
from src.meeting_gateway.gateway.recall_client import RecallClient
from src.meeting_gateway.gateway.schemas import Mode

logger = structlog.get_logger(__name__)

MISSING_CREDENTIALS_MESSAGE = (
    "No usable credentials found. Set either:\n"
    "  - GROUPTHINK_TOKEN (hosted mode), or\n"
    "  - RECALL_TOKEN (or RECALLAI_TOKEN) and OPENAI_KEY (or OPENAI_API_KEY) (direct mode)."
)


def resolve_mode(settings: Settings) -> Mode:
    """Decide the upstream mode from the credentials present.

    Raises:
        StartupConfigurationError: Neither credential set is complete.
    """
    if settings.GROUPTHINK_TOKEN.strip():
        return Mode.HOSTED
    if settings.RECALL_TOKEN.strip() and settings.OPENAI_KEY.strip():
        return Mode.DIRECT
    raise StartupConfigurationError(MISSING_CREDENTIALS_MESSAGE)


def select_backend(settings: Settings) -> MeetingBackend:
    """Build the MeetingBackend for the resolved mode."""
    mode = resolve_mode(settings)

    if mode == Mode.HOSTED:
        backend: MeetingBackend = HostedBackend(
            token=settings.GROUPTHINK_TOKEN.strip(),
            base_url=settings.GROUPTHINK_API,
            timeout=settings.TIMEOUT_DEFAULT,
            synthesis_timeout=settings.TIMEOUT_SYNTHESIS,
            read_retry_attempts=settings.READ_RETRY_ATTEMPTS,
            seconds_per_char=settings.SPEECH_SECONDS_PER_CHAR,
        )
    else:
        backend = DirectBackend(
            recall_client=RecallClient(
                api_key=settings.RECALL_TOKEN.strip(),
                base_url=settings.RECALL_API_BASE,
                timeout=settings.TIMEOUT_DEFAULT,
                read_retry_attempts=settings.READ_RETRY_ATTEMPTS,
            ),
            tts_client=OpenAITTS(
                api_key=settings.OPENAI_KEY.strip(),
                base_url=settings.OPENAI_API_BASE,
                model=settings.TTS_MODEL,
                speed=settings.TTS_SPEED,
                timeout=settings.TIMEOUT_SYNTHESIS,
            ),
            transcription_provider=settings.TRANSCRIPTION_PROVIDER,
            transcript_webhook_url=settings.TRANSCRIPT_WEBHOOK_URL,
            join_greeting=settings.JOIN_CHAT_GREETING,
            seconds_per_char=settings.SPEECH_SECONDS_PER_CHAR,
        )

    logger.info("gateway.mode_selected", mode=mode.value)
    return backend
