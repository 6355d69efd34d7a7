"""Tool handlers for the meeting bot lifecycle.

Each handler composes registry reads/writes with calls to the configured
MeetingBackend and returns a single human-readable string. Gateway errors
are caught here and reported as text; they never escape to the MCP layer.

Per-bot lifecycle: Unregistered -> Created -> (Active | WaitingForAdmission)
-> Left. Admission happens upstream and is only visible through bot_status.
Leave always removes the local session, even when the upstream call fails.
"""

from __future__ import annotations

import math

import structlog

from src.meeting_gateway.core.errors import MeetingGatewayError, UnknownSessionError
from src.meeting_gateway.core.retry import single_retrying
from src.meeting_gateway.gateway.backend import MeetingBackend
from src.meeting_gateway.gateway.schemas import DEFAULT_VOICE, Voice
from src.meeting_gateway.sessions.registry import Session, SessionRegistry
from src.meeting_gateway.sessions.transcript import compute_delta
from src.meeting_gateway.tools.meeting_url import normalize_meeting_url

logger = structlog.get_logger(__name__)

# Pause added on top of the estimated duration before speaking again
SPEAK_GAP_SECONDS = 2


class MeetingToolHandlers:
    """Implements join_meeting, get_transcript, speak, send_chat, bot_status
    and leave_meeting on top of one MeetingBackend.

    Args:
        backend: Upstream adapter selected at startup.
        registry: Session registry shared with the lifecycle manager.
        retry_backoff: Seconds to wait before the single speak/chat retry.
        default_bot_name: Display name used when join_meeting gets none.
        default_voice: Voice used when speak gets none.
    """

    def __init__(
        self,
        backend: MeetingBackend,
        registry: SessionRegistry,
        retry_backoff: float = 2.0,
        default_bot_name: str = "Agent",
        default_voice: Voice = DEFAULT_VOICE,
    ) -> None:
        self._backend = backend
        self._registry = registry
        self._retry_backoff = retry_backoff
        self._default_bot_name = default_bot_name
        self._default_voice = default_voice

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    async def join_meeting(self, meeting_url: str, bot_name: str | None = None) -> str:
        """Create a bot for the meeting and register its session."""
        name = (bot_name or "").strip() or self._default_bot_name
        if not meeting_url or not meeting_url.strip():
            return "Failed to create bot: meeting_url is required."
        url = normalize_meeting_url(meeting_url)

        try:
            bot_id = await self._backend.create_bot(url, name)
        except MeetingGatewayError as exc:
            logger.warning("tool.join_failed", meeting_url=url, error=str(exc))
            return f"Failed to create bot: {exc}"

        await self._registry.register(Session(bot_id=bot_id, display_name=name, meeting_url=url))

        return (
            f'✅ Bot "{name}" created (ID: {bot_id}). It\'s joining the meeting now.\n\n'
            "The host may need to admit the bot from the waiting room.\n\n"
            f'Use get_transcript(bot_id="{bot_id}") to listen, and '
            f'speak(bot_id="{bot_id}", text="...") to talk.\n\n'
            "**Suggested workflow:**\n"
            "1. Wait ~15 seconds for the bot to be admitted\n"
            "2. Call get_transcript to see what people are saying\n"
            "3. Call speak when you want to say something\n"
            "4. Call leave_meeting when done"
        )

    async def get_transcript(self, bot_id: str) -> str:
        """Return transcript lines that arrived since the previous call."""
        try:
            session = await self._registry.require(bot_id)
            entries = await self._backend.fetch_transcript(bot_id)
        except UnknownSessionError as exc:
            return str(exc)
        except MeetingGatewayError as exc:
            logger.warning("tool.transcript_failed", bot_id=bot_id, error=str(exc))
            return f"Failed to get transcript: {exc}"

        delta = compute_delta(entries, session.transcript_cursor, session.display_name)
        try:
            await self._registry.advance_cursor(bot_id, delta.cursor)
        except UnknownSessionError as exc:
            # Left while the fetch was in flight
            return str(exc)

        logger.debug(
            "tool.transcript_delta",
            bot_id=bot_id,
            total_entries=len(entries),
            new_entries=delta.new_count,
            echo_entries=delta.echo_count,
            cursor=delta.cursor,
        )
        return delta.render()

    async def speak(self, bot_id: str, text: str, voice: str | None = None) -> str:
        """Speak ``text`` in the meeting, retrying once on failure."""
        if not text or not text.strip():
            return "Nothing to say: text is empty."
        try:
            selected_voice = Voice(voice) if voice else self._default_voice
        except ValueError:
            choices = ", ".join(v.value for v in Voice)
            return f"Unknown voice '{voice}'. Choose one of: {choices}."

        try:
            async for attempt in single_retrying(self._retry_backoff):
                with attempt:
                    duration = await self._backend.speak(bot_id, text, selected_voice)
        except MeetingGatewayError as exc:
            logger.warning("tool.speak_failed", bot_id=bot_id, error=str(exc))
            return f"Failed to speak (after retry): {exc}"

        retried = attempt.retry_state.attempt_number > 1
        estimate = f"{duration:.1f}"
        wait_seconds = math.ceil(float(estimate) + SPEAK_GAP_SECONDS)
        logger.info(
            "tool.spoke",
            bot_id=bot_id,
            voice=selected_voice.value,
            estimated_seconds=float(estimate),
            retried=retried,
        )
        result = (
            f'🔊 Spoke: "{text}" (est. {estimate}s). Wait at least {wait_seconds}s '
            "before speaking again to avoid overlap."
        )
        if retried:
            result += "\n(Note: the first attempt failed; this succeeded on retry.)"
        return result

    async def send_chat(self, bot_id: str, message: str) -> str:
        """Post ``message`` to the meeting chat, retrying once on failure."""
        if not message or not message.strip():
            return "Nothing to send: message is empty."

        try:
            async for attempt in single_retrying(self._retry_backoff):
                with attempt:
                    await self._backend.send_chat(bot_id, message)
        except MeetingGatewayError as exc:
            logger.warning("tool.chat_failed", bot_id=bot_id, error=str(exc))
            return f"Failed to send chat (after retry): {exc}"

        result = f'💬 Sent in meeting chat: "{message}"'
        if attempt.retry_state.attempt_number > 1:
            result += "\n(Note: the first attempt failed; this succeeded on retry.)"
        return result

    async def bot_status(self, bot_id: str) -> str:
        """Report the bot's latest upstream status."""
        try:
            status = await self._backend.get_status(bot_id)
        except MeetingGatewayError as exc:
            logger.warning("tool.status_failed", bot_id=bot_id, error=str(exc))
            return f"Failed to check status: {exc}"

        return (
            f'Bot "{status.display_name or "unknown"}" — Status: {status.status_code}\n'
            f"Meeting: {status.meeting_url or 'unknown'}\n"
            f"Created: {status.created_at or 'unknown'}"
        )

    async def leave_meeting(self, bot_id: str) -> str:
        """Ask the bot to leave; the local session is removed regardless."""
        upstream_error: MeetingGatewayError | None = None
        try:
            await self._backend.leave(bot_id)
        except MeetingGatewayError as exc:
            upstream_error = exc
            logger.warning("tool.leave_upstream_failed", bot_id=bot_id, error=str(exc))
        finally:
            await self._registry.remove(bot_id)

        if upstream_error is not None:
            return (
                "👋 Bot removed from this session. The platform reported: "
                f"{upstream_error}"
            )
        return "👋 Bot left the meeting."
