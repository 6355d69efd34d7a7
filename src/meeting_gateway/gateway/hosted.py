"""Hosted mode backend: the Groupthink platform proxies bot and speech APIs.

A single bearer token authenticates every call. The platform performs
synthesis and audio playback atomically on its side, so speak is one
request that may report its own duration estimate.

Endpoints (relative to GROUPTHINK_API):
    POST /api/meeting-bots                      create
    GET  /api/meeting-bots/{id}                 status
    GET  /api/meeting-bots/{id}/transcript      transcript
    POST /api/meeting-bots/{id}/speak           speak
    POST /api/meeting-bots/{id}/chat            chat
    POST /api/meeting-bots/{id}/leave           leave
"""

from __future__ import annotations

import httpx
import structlog

from src.meeting_gateway.core.errors import UpstreamGenericError
from src.meeting_gateway.core.http import UpstreamHTTPClient
from src.meeting_gateway.core.retry import read_retrying
from src.meeting_gateway.gateway.backend import MeetingBackend
from src.meeting_gateway.gateway.schemas import (
    BotStatus,
    Mode,
    TranscriptEntry,
    Voice,
    parse_bot_status,
    parse_transcript,
)

logger = structlog.get_logger(__name__)


class HostedBackend(MeetingBackend):
    """MeetingBackend that talks only to the Groupthink platform.

    Args:
        token: Groupthink API (Sanctum) token.
        base_url: Platform root, e.g. https://app.groupthink.com.
        timeout: Timeout for bot management, chat and status calls.
        synthesis_timeout: Timeout for speak, which includes synthesis.
        read_retry_attempts: Attempts for transcript/status reads.
        read_retry_wait: Base backoff for read retries.
        seconds_per_char: Fallback speaking-rate heuristic.
        transport: Optional httpx transport override.
    """

    mode = Mode.HOSTED
    CREDENTIAL = "GROUPTHINK_TOKEN"

    def __init__(
        self,
        token: str,
        base_url: str = "https://app.groupthink.com",
        timeout: float = 30.0,
        synthesis_timeout: float = 60.0,
        read_retry_attempts: int = 3,
        read_retry_wait: float = 1.0,
        seconds_per_char: float = 0.065,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(seconds_per_char=seconds_per_char)
        self._timeout = timeout
        self._synthesis_timeout = synthesis_timeout
        self._read_retry_attempts = read_retry_attempts
        self._read_retry_wait = read_retry_wait
        self._http = UpstreamHTTPClient(
            base_url=f"{base_url.rstrip('/')}/api/meeting-bots",
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            credential=self.CREDENTIAL,
            service="Groupthink",
            transport=transport,
        )

    async def create_bot(self, meeting_url: str, display_name: str) -> str:
        data = await self._http.request_json(
            "POST",
            "",
            timeout=self._timeout,
            json={"meeting_url": meeting_url, "bot_name": display_name},
        )
        if data is not None and not isinstance(data, dict):
            raise UpstreamGenericError("Groupthink returned an unexpected bot payload.", payload=data)
        bot_id = (data or {}).get("id") or (data or {}).get("bot_id")
        if not bot_id:
            raise UpstreamGenericError(
                "Groupthink accepted the bot request but returned no bot id.",
                payload=data,
            )
        logger.info("hosted.bot_created", bot_id=bot_id, bot_name=display_name)
        return str(bot_id)

    async def fetch_transcript(self, bot_id: str) -> list[TranscriptEntry]:
        async for attempt in read_retrying(self._read_retry_attempts, self._read_retry_wait):
            with attempt:
                data = await self._http.request_json(
                    "GET", f"/{bot_id}/transcript", timeout=self._timeout, bot_id=bot_id
                )
        # Accept both a bare list and a {"transcript": [...]} envelope
        if isinstance(data, dict):
            data = data.get("transcript", [])
        return parse_transcript(data, service="Groupthink")

    async def speak(self, bot_id: str, text: str, voice: Voice) -> float:
        data = await self._http.request_json(
            "POST",
            f"/{bot_id}/speak",
            timeout=self._synthesis_timeout,
            json={"text": text, "voice": Voice(voice).value},
            bot_id=bot_id,
        )
        duration = (data or {}).get("estimated_duration") if isinstance(data, dict) else None
        if isinstance(duration, (int, float)) and duration >= 0:
            return float(duration)
        return self.estimate_duration(text)

    async def send_chat(self, bot_id: str, message: str) -> None:
        await self._http.request_json(
            "POST",
            f"/{bot_id}/chat",
            timeout=self._timeout,
            json={"message": message},
            bot_id=bot_id,
        )

    async def get_status(self, bot_id: str) -> BotStatus:
        async for attempt in read_retrying(self._read_retry_attempts, self._read_retry_wait):
            with attempt:
                data = await self._http.request_json(
                    "GET", f"/{bot_id}", timeout=self._timeout, bot_id=bot_id
                )
        return parse_bot_status(data or {}, service="Groupthink")

    async def leave(self, bot_id: str) -> None:
        await self._http.request_json(
            "POST", f"/{bot_id}/leave", timeout=self._timeout, bot_id=bot_id
        )
        logger.info("hosted.bot_left", bot_id=bot_id)
