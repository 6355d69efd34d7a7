"""Incremental transcript cursoring.

The upstream always returns the full transcript so far. Given that snapshot
and the session cursor, compute_delta() selects entries the caller has not
seen, strips the bot's own speech, and reports where the cursor goes next.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.meeting_gateway.gateway.schemas import TranscriptEntry

NO_NEW_SPEECH = "(No new speech since last check)"
ONLY_SELF_ECHO = "(Only heard own echo — no new human speech)"


@dataclass
class TranscriptDelta:
    """Result of diffing one transcript snapshot against a cursor."""

    lines: list[str] = field(default_factory=list)
    new_count: int = 0
    cursor: float | None = None

    @property
    def echo_count(self) -> int:
        return self.new_count - len(self.lines)

    def render(self) -> str:
        """Newline-joined lines, or the matching sentinel."""
        if self.new_count == 0:
            return NO_NEW_SPEECH
        if not self.lines:
            return ONLY_SELF_ECHO
        return "\n".join(self.lines)


def select_new_entries(
    entries: list[TranscriptEntry], cursor: float | None
) -> list[TranscriptEntry]:
    """Entries whose effective timestamp is past ``cursor``.

    With no cursor every entry is new. Once a cursor exists, untimed entries
    are never considered new.
    """
    if cursor is None:
        return list(entries)
    return [
        entry
        for entry in entries
        if entry.effective_timestamp is not None and entry.effective_timestamp > cursor
    ]


def next_cursor(entries: list[TranscriptEntry], cursor: float | None) -> float | None:
    """Cursor after this snapshot: the last entry's timestamp, never lower."""
    if not entries:
        return cursor
    last = entries[-1].effective_timestamp
    if last is None:
        return cursor
    if cursor is None or last > cursor:
        return last
    return cursor


def is_self_echo(line: str, display_name: str) -> bool:
    return line.startswith(f"{display_name}: ")


def compute_delta(
    entries: list[TranscriptEntry],
    cursor: float | None,
    display_name: str,
) -> TranscriptDelta:
    """Diff a full transcript snapshot against ``cursor``.

    Args:
        entries: Full upstream transcript, in upstream order.
        cursor: Session cursor before this fetch.
        display_name: Bot display name; its lines are dropped as self-echo.
    """
    new_entries = select_new_entries(entries, cursor)
    rendered = [entry.render() for entry in new_entries]
    return TranscriptDelta(
        lines=[line for line in rendered if not is_self_echo(line, display_name)],
        new_count=len(new_entries),
        cursor=next_cursor(entries, cursor),
    )
