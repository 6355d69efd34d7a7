"""Shared fixtures for gateway tests.

Provides:
- FakeBackend: scriptable in-memory MeetingBackend recording every call
- make_entry(): build a timed TranscriptEntry from plain text
- registry / handlers fixtures with zero retry backoff
"""

from __future__ import annotations

import pytest

from src.meeting_gateway.gateway.backend import MeetingBackend
from src.meeting_gateway.gateway.schemas import (
    BotStatus,
    Mode,
    TranscriptEntry,
    TranscriptWord,
    Voice,
)
from src.meeting_gateway.sessions.registry import SessionRegistry
from src.meeting_gateway.tools.handlers import MeetingToolHandlers


def make_entry(speaker: str | None, text: str, end: float | None) -> TranscriptEntry:
    """Entry whose words end at ``end`` (untimed when ``end`` is None)."""
    tokens = text.split()
    words = []
    for index, token in enumerate(tokens):
        is_last = index == len(tokens) - 1
        word_end = end if is_last or end is None else end - 0.5
        words.append(
            TranscriptWord(
                text=token,
                start_timestamp=None if end is None else max(end - 1.0, 0.0),
                end_timestamp=word_end,
            )
        )
    return TranscriptEntry(speaker=speaker, words=words)


class FakeBackend(MeetingBackend):
    """In-memory backend. Queue exceptions per operation with fail_next()."""

    mode = Mode.DIRECT

    def __init__(self) -> None:
        super().__init__(seconds_per_char=0.065)
        self.transcript: list[TranscriptEntry] = []
        self.status = BotStatus(
            display_name="Agent",
            status_code="in_call_recording",
            meeting_url="https://meet.google.com/abc-defg-hij",
            created_at="2026-01-01T00:00:00Z",
        )
        self.calls: list[tuple] = []
        self._failures: dict[str, list[Exception]] = {}
        self._next_id = 0

    def fail_next(self, operation: str, *errors: Exception) -> None:
        self._failures.setdefault(operation, []).extend(errors)

    def calls_to(self, operation: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == operation]

    def _record(self, operation: str, *args: object) -> None:
        self.calls.append((operation, *args))
        queued = self._failures.get(operation)
        if queued:
            raise queued.pop(0)

    async def create_bot(self, meeting_url: str, display_name: str) -> str:
        self._record("create_bot", meeting_url, display_name)
        self._next_id += 1
        return f"bot-{self._next_id}"

    async def fetch_transcript(self, bot_id: str) -> list[TranscriptEntry]:
        self._record("fetch_transcript", bot_id)
        return list(self.transcript)

    async def speak(self, bot_id: str, text: str, voice: Voice) -> float:
        self._record("speak", bot_id, text, voice)
        return self.estimate_duration(text)

    async def send_chat(self, bot_id: str, message: str) -> None:
        self._record("send_chat", bot_id, message)

    async def get_status(self, bot_id: str) -> BotStatus:
        self._record("get_status", bot_id)
        return self.status

    async def leave(self, bot_id: str) -> None:
        self._record("leave", bot_id)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def handlers(backend, registry) -> MeetingToolHandlers:
    """Handlers with no retry backoff so tests do not sleep."""
    return MeetingToolHandlers(backend=backend, registry=registry, retry_backoff=0)


@pytest.fixture
def entry():
    """Factory for timed transcript entries (see make_entry)."""
    return make_entry
