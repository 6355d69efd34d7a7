"""Async HTTP client wrapper for the Recall.ai REST API.

Covers the bot operations the gateway needs: create, details/status,
transcript, audio output, chat, and leave. Errors are normalized by the
shared UpstreamHTTPClient; read operations are wrapped in the read retry
policy, mutations are sent once.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.meeting_gateway.core.errors import UpstreamGenericError
from src.meeting_gateway.core.http import UpstreamHTTPClient
from src.meeting_gateway.core.retry import read_retrying

logger = structlog.get_logger(__name__)


class RecallClient:
    """Async client for Recall.ai REST API.

    Args:
        api_key: Recall.ai API token.
        base_url: API root (default: https://api.recall.ai/api/v1).
        timeout: Per-request timeout in seconds.
        read_retry_attempts: Attempts for transcript/status reads.
        read_retry_wait: Base backoff for read retries.
        transport: Optional httpx transport override.
    """

    CREDENTIAL = "RECALL_TOKEN"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.recall.ai/api/v1",
        timeout: float = 30.0,
        read_retry_attempts: int = 3,
        read_retry_wait: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._read_retry_attempts = read_retry_attempts
        self._read_retry_wait = read_retry_wait
        self._http = UpstreamHTTPClient(
            base_url=base_url,
            headers={
                "Authorization": f"Token {api_key}",
                "Content-Type": "application/json",
            },
            credential=self.CREDENTIAL,
            service="Recall.ai",
            transport=transport,
        )

    async def create_bot(self, config: dict) -> dict:
        """Create a new meeting bot.

        POST /bot/ with the full bot configuration.

        Args:
            config: Complete bot creation configuration dict.

        Returns:
            Bot creation response with bot id.
        """
        data = await self._http.request_json(
            "POST", "/bot/", timeout=self._timeout, json=config
        )
        if data is not None and not isinstance(data, dict):
            raise UpstreamGenericError("Recall.ai returned an unexpected bot payload.", payload=data)
        logger.info(
            "recall.bot_created",
            bot_id=(data or {}).get("id"),
            bot_name=config.get("bot_name"),
        )
        return data or {}

    async def get_bot(self, bot_id: str) -> dict:
        """Get full bot details.

        GET /bot/{bot_id}/ returns complete bot state including
        status_changes, meeting_url and created_at.
        """
        async for attempt in read_retrying(self._read_retry_attempts, self._read_retry_wait):
            with attempt:
                data = await self._http.request_json(
                    "GET", f"/bot/{bot_id}/", timeout=self._timeout, bot_id=bot_id
                )
        return data or {}

    async def get_transcript(self, bot_id: str) -> list[dict]:
        """Get the transcript accumulated so far.

        GET /bot/{bot_id}/transcript/ returns per-speaker entries.
        """
        async for attempt in read_retrying(self._read_retry_attempts, self._read_retry_wait):
            with attempt:
                data = await self._http.request_json(
                    "GET",
                    f"/bot/{bot_id}/transcript/",
                    timeout=self._timeout,
                    bot_id=bot_id,
                )
        entries = data if isinstance(data, list) else []
        logger.debug(
            "recall.transcript_retrieved",
            bot_id=bot_id,
            entry_count=len(entries),
        )
        return entries

    async def send_audio(self, bot_id: str, mp3_b64: str) -> None:
        """Send MP3 audio to bot for playback in meeting.

        POST /bot/{bot_id}/output_audio/ with base64-encoded MP3 data.
        """
        await self._http.request_json(
            "POST",
            f"/bot/{bot_id}/output_audio/",
            timeout=self._timeout,
            json={"kind": "mp3", "b64_data": mp3_b64},
            bot_id=bot_id,
        )
        logger.info("recall.audio_sent", bot_id=bot_id, payload_chars=len(mp3_b64))

    async def send_chat_message(self, bot_id: str, message: str) -> None:
        """POST /bot/{bot_id}/send_chat_message/ to everyone in the call."""
        await self._http.request_json(
            "POST",
            f"/bot/{bot_id}/send_chat_message/",
            timeout=self._timeout,
            json={"message": message},
            bot_id=bot_id,
        )
        logger.info("recall.chat_sent", bot_id=bot_id, message_length=len(message))

    async def leave_call(self, bot_id: str) -> None:
        """POST /bot/{bot_id}/leave_call/ to remove the bot from the meeting."""
        await self._http.request_json(
            "POST",
            f"/bot/{bot_id}/leave_call/",
            timeout=self._timeout,
            bot_id=bot_id,
        )
        logger.info("recall.bot_left", bot_id=bot_id)


def build_bot_config(
    meeting_url: str,
    bot_name: str,
    transcription_provider: str = "deepgram",
    transcript_webhook_url: str = "",
    join_greeting: bool = True,
) -> dict[str, Any]:
    """Build the POST /bot/ payload.

    Args:
        meeting_url: Normalized meeting URL.
        bot_name: Display name in the meeting.
        transcription_provider: Recall transcription provider key.
        transcript_webhook_url: Optional real-time transcript destination.
        join_greeting: Post a chat greeting when the bot joins.
    """
    config: dict[str, Any] = {
        "bot_name": bot_name,
        "meeting_url": meeting_url,
        "transcription_options": {"provider": transcription_provider},
    }
    if transcript_webhook_url:
        config["real_time_transcription"] = {
            "destination_url": transcript_webhook_url,
            "partial_results": False,
        }
    if join_greeting:
        config["chat"] = {
            "on_bot_join": {
                "send_to": "everyone",
                "message": f"👋 {bot_name} has joined the meeting.",
            },
        }
    return config
