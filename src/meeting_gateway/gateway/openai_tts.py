"""OpenAI speech synthesis via the REST API.

Returns synthesized audio as an opaque MP3 byte blob; the gateway never
decodes it, only forwards it to the bot platform.
"""

from __future__ import annotations

import httpx
import structlog

from src.meeting_gateway.core.http import UpstreamHTTPClient

logger = structlog.get_logger(__name__)


class OpenAITTS:
    """Text-to-speech client for POST /audio/speech.

    Args:
        api_key: OpenAI API key.
        base_url: API root (default: https://api.openai.com/v1).
        model: Speech model name.
        speed: Playback speed multiplier.
        timeout: Synthesis timeout in seconds; longer text takes longer.
        transport: Optional httpx transport override.
    """

    CREDENTIAL = "OPENAI_KEY"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "tts-1",
        speed: float = 1.0,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._model = model
        self._speed = speed
        self._timeout = timeout
        self._http = UpstreamHTTPClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            credential=self.CREDENTIAL,
            service="OpenAI TTS",
            transport=transport,
        )

    async def synthesize(self, text: str, voice: str) -> bytes:
        """Synthesize ``text`` and return MP3 bytes."""
        audio = await self._http.request_bytes(
            "POST",
            "/audio/speech",
            timeout=self._timeout,
            json={
                "model": self._model,
                "input": text,
                "voice": voice,
                "speed": self._speed,
            },
        )
        logger.info(
            "tts.synthesized",
            voice=voice,
            text_length=len(text),
            audio_bytes=len(audio),
        )
        return audio
