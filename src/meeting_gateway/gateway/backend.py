"""Abstract upstream backend interface.

Tool handlers talk to exactly one MeetingBackend, chosen once at startup by
gateway.selector. Implementations raise UpstreamError subclasses (already
normalized) on failure and never return partial results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.meeting_gateway.gateway.schemas import BotStatus, Mode, TranscriptEntry, Voice


class MeetingBackend(ABC):
    """Capability set shared by the Direct and Hosted upstream adapters.

    Args:
        seconds_per_char: Speaking-rate heuristic for duration estimates.
    """

    mode: Mode

    def __init__(self, seconds_per_char: float = 0.065) -> None:
        self._seconds_per_char = seconds_per_char

    def estimate_duration(self, text: str) -> float:
        """Rough spoken duration of ``text`` in seconds."""
        return len(text) * self._seconds_per_char

    @abstractmethod
    async def create_bot(self, meeting_url: str, display_name: str) -> str:
        """Create a bot that joins ``meeting_url``; returns the bot id."""

    @abstractmethod
    async def fetch_transcript(self, bot_id: str) -> list[TranscriptEntry]:
        """Return the full current transcript (not a delta)."""

    @abstractmethod
    async def speak(self, bot_id: str, text: str, voice: Voice) -> float:
        """Play synthesized speech in the meeting; returns estimated seconds."""

    @abstractmethod
    async def send_chat(self, bot_id: str, message: str) -> None:
        """Post a message to the meeting chat."""

    @abstractmethod
    async def get_status(self, bot_id: str) -> BotStatus:
        """Return the bot's current upstream status."""

    @abstractmethod
    async def leave(self, bot_id: str) -> None:
        """Ask the bot to leave the call."""
