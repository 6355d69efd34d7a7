"""Direct mode backend: Recall.ai for the bot, OpenAI for speech.

Speaking is a two-step composite (synthesize, then push audio). Audio is
only pushed after synthesis fully succeeds, so a failure in either step
fails the whole call without a half-delivered utterance.
"""

from __future__ import annotations

import base64

import structlog

from src.meeting_gateway.core.errors import UpstreamGenericError
from src.meeting_gateway.gateway.backend import MeetingBackend
from src.meeting_gateway.gateway.openai_tts import OpenAITTS
from src.meeting_gateway.gateway.recall_client import RecallClient, build_bot_config
from src.meeting_gateway.gateway.schemas import (
    BotStatus,
    Mode,
    TranscriptEntry,
    Voice,
    parse_bot_status,
    parse_transcript,
)

logger = structlog.get_logger(__name__)


class DirectBackend(MeetingBackend):
    """MeetingBackend using operator-supplied Recall.ai and OpenAI credentials.

    Args:
        recall_client: RecallClient for bot operations.
        tts_client: OpenAITTS for speech synthesis.
        transcription_provider: Provider key sent on bot creation.
        transcript_webhook_url: Optional real-time transcript destination.
        join_greeting: Post a chat greeting when the bot joins.
        seconds_per_char: Speaking-rate heuristic for duration estimates.
    """

    mode = Mode.DIRECT

    def __init__(
        self,
        recall_client: RecallClient,
        tts_client: OpenAITTS,
        transcription_provider: str = "deepgram",
        transcript_webhook_url: str = "",
        join_greeting: bool = True,
        seconds_per_char: float = 0.065,
    ) -> None:
        super().__init__(seconds_per_char=seconds_per_char)
        self._recall = recall_client
        self._tts = tts_client
        self._transcription_provider = transcription_provider
        self._transcript_webhook_url = transcript_webhook_url
        self._join_greeting = join_greeting

    async def create_bot(self, meeting_url: str, display_name: str) -> str:
        config = build_bot_config(
            meeting_url,
            display_name,
            transcription_provider=self._transcription_provider,
            transcript_webhook_url=self._transcript_webhook_url,
            join_greeting=self._join_greeting,
        )
        data = await self._recall.create_bot(config)
        bot_id = data.get("id")
        if not bot_id:
            raise UpstreamGenericError(
                "Recall.ai accepted the bot request but returned no bot id.",
                payload=data,
            )
        return str(bot_id)

    async def fetch_transcript(self, bot_id: str) -> list[TranscriptEntry]:
        return parse_transcript(await self._recall.get_transcript(bot_id), service="Recall.ai")

    async def speak(self, bot_id: str, text: str, voice: Voice) -> float:
        audio = await self._tts.synthesize(text, Voice(voice).value)
        if not audio:
            raise UpstreamGenericError("Speech synthesis returned no audio.")

        mp3_b64 = base64.b64encode(audio).decode("utf-8")
        await self._recall.send_audio(bot_id, mp3_b64=mp3_b64)
        return self.estimate_duration(text)

    async def send_chat(self, bot_id: str, message: str) -> None:
        await self._recall.send_chat_message(bot_id, message)

    async def get_status(self, bot_id: str) -> BotStatus:
        return parse_bot_status(await self._recall.get_bot(bot_id), service="Recall.ai")

    async def leave(self, bot_id: str) -> None:
        await self._recall.leave_call(bot_id)
