"""In-memory session registry for live bots.

One Session per bot created by this process, keyed by the upstream bot id.
The registry is created at startup, read and written by tool handlers, and
drained by the lifecycle manager at shutdown. Nothing is persisted.

All access goes through a single asyncio.Lock. Entries are only mutated by
the handler processing a call for that bot, so no per-entry locking exists.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from src.meeting_gateway.core.errors import UnknownSessionError

logger = structlog.get_logger(__name__)


@dataclass
class Session:
    """Local state for one live bot.

    Attributes:
        bot_id: Upstream bot identifier.
        display_name: Name shown in the meeting; used for self-echo filtering.
        meeting_url: Normalized meeting URL the bot was sent to.
        transcript_cursor: End timestamp of the last delivered transcript
            entry, or None before anything was observed.
        created_at: When this process registered the bot.
    """

    bot_id: str
    display_name: str
    meeting_url: str
    transcript_cursor: float | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionRegistry:
    """Concurrency-safe map from bot id to Session."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, bot_id: object) -> bool:
        return bot_id in self._sessions

    def bot_ids(self) -> list[str]:
        """Snapshot of registered bot ids."""
        return list(self._sessions)

    async def register(self, session: Session) -> None:
        """Insert (or replace) the session for ``session.bot_id``."""
        async with self._lock:
            self._sessions[session.bot_id] = session
        logger.info(
            "session.registered",
            bot_id=session.bot_id,
            display_name=session.display_name,
            meeting_url=session.meeting_url,
        )

    async def get(self, bot_id: str) -> Session | None:
        async with self._lock:
            return self._sessions.get(bot_id)

    async def require(self, bot_id: str) -> Session:
        """Return the session or raise UnknownSessionError."""
        session = await self.get(bot_id)
        if session is None:
            raise UnknownSessionError(bot_id)
        return session

    async def advance_cursor(self, bot_id: str, timestamp: float | None) -> float | None:
        """Move the transcript cursor forward to ``timestamp``.

        The cursor never moves backwards; a None or lower timestamp leaves it
        unchanged.

        Returns:
            The cursor value after the update.

        Raises:
            UnknownSessionError: The bot was removed meanwhile.
        """
        async with self._lock:
            session = self._sessions.get(bot_id)
            if session is None:
                raise UnknownSessionError(bot_id)
            if timestamp is not None and (
                session.transcript_cursor is None or timestamp > session.transcript_cursor
            ):
                session.transcript_cursor = timestamp
            return session.transcript_cursor

    async def remove(self, bot_id: str) -> Session | None:
        """Remove and return the session, if registered."""
        async with self._lock:
            session = self._sessions.pop(bot_id, None)
        if session is not None:
            logger.info("session.removed", bot_id=bot_id)
        return session

    async def drain(self) -> list[Session]:
        """Remove and return every session (used at shutdown)."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        return sessions
