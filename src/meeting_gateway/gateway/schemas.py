"""Pydantic v2 schemas for upstream meeting-bot data.

Transcript entries are read-only mirrors of what the bot platform returns:
a speaker label plus word tokens carrying start/end timestamps in the
platform's clock unit (seconds since the bot started recording).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.meeting_gateway.core.errors import UpstreamGenericError


# ── Enums ────────────────────────────────────────────────────────────────────


class Mode(str, Enum):
    """Upstream mode, fixed for the lifetime of the process."""

    HOSTED = "hosted"
    DIRECT = "direct"


class Voice(str, Enum):
    """Speech synthesis voices accepted by the speak tool."""

    ALLOY = "alloy"
    ECHO = "echo"
    FABLE = "fable"
    ONYX = "onyx"
    NOVA = "nova"
    SHIMMER = "shimmer"


DEFAULT_VOICE = Voice.NOVA


# ── Transcript ───────────────────────────────────────────────────────────────


class TranscriptWord(BaseModel):
    """A single recognized word with timing."""

    model_config = ConfigDict(extra="ignore")

    text: str = ""
    start_timestamp: float | None = None
    end_timestamp: float | None = None

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("start_timestamp", "end_timestamp", mode="before")
    @classmethod
    def _unwrap_relative(cls, value: object) -> object:
        # Newer API versions nest timestamps as {"relative": s, "absolute": iso}
        if isinstance(value, dict):
            return value.get("relative")
        return value


class TranscriptEntry(BaseModel):
    """One speaker turn from the upstream transcript."""

    model_config = ConfigDict(extra="ignore")

    speaker: str | None = None
    words: list[TranscriptWord] = Field(default_factory=list)
    text: str | None = Field(
        None,
        description="Flat text, used only when the payload carries no words",
    )

    @field_validator("speaker", mode="before")
    @classmethod
    def _unwrap_speaker(cls, value: object) -> object:
        # Some payloads carry the participant object instead of its name
        if isinstance(value, dict):
            return value.get("name")
        return value

    @property
    def effective_timestamp(self) -> float | None:
        """End timestamp of the last word, or None when untimed."""
        if not self.words:
            return None
        return self.words[-1].end_timestamp

    def render(self) -> str:
        """Format as ``speaker: text``."""
        speaker = self.speaker or "Unknown"
        if self.words:
            body = " ".join(word.text for word in self.words if word.text)
        else:
            body = self.text or ""
        return f"{speaker}: {body}"


# ── Bot status ───────────────────────────────────────────────────────────────


class BotStatus(BaseModel):
    """Snapshot of a bot as reported by the upstream platform."""

    display_name: str | None = None
    status_code: str = "unknown"
    meeting_url: str | None = None
    created_at: str | None = None

    @field_validator("status_code", mode="before")
    @classmethod
    def _unwrap_code(cls, value: object) -> object:
        if isinstance(value, dict):
            value = value.get("code")
        if value is None or value == "":
            return "unknown"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("meeting_url", mode="before")
    @classmethod
    def _meeting_url_text(cls, value: object) -> object:
        # Recall returns meeting_url either as a string or as a parsed object
        if isinstance(value, dict):
            meeting_id = value.get("meeting_id")
            platform = value.get("platform")
            if not meeting_id:
                return None
            if platform == "google_meet":
                return f"https://meet.google.com/{meeting_id}"
            return f"{platform or 'meeting'}:{meeting_id}"
        return value

    @field_validator("display_name", "created_at", mode="before")
    @classmethod
    def _stringify_scalar(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


def parse_transcript(data: object, service: str = "Upstream") -> list[TranscriptEntry]:
    """Validate a transcript payload; non-list payloads yield no entries.

    Raises:
        UpstreamGenericError: An entry has a shape that cannot be read.
    """
    if not isinstance(data, list):
        return []
    try:
        return [TranscriptEntry.model_validate(entry) for entry in data if isinstance(entry, dict)]
    except ValidationError as exc:
        raise UpstreamGenericError(
            f"{service} returned an unexpected transcript payload.", payload=data
        ) from exc


def parse_bot_status(data: object, service: str = "Upstream") -> BotStatus:
    """Build a BotStatus from a bot payload.

    Accepts a flat ``status`` (string or ``{"code": ...}``) or a
    ``status_changes`` history, whichever the platform sends.

    Raises:
        UpstreamGenericError: The payload is not an object or its fields
            cannot be read.
    """
    if not isinstance(data, dict):
        raise UpstreamGenericError(
            f"{service} returned an unexpected bot payload.", payload=data
        )
    status = data.get("status") or latest_status_code(data.get("status_changes"))
    try:
        return BotStatus(
            display_name=data.get("bot_name"),
            status_code=status,
            meeting_url=data.get("meeting_url"),
            created_at=data.get("created_at"),
        )
    except ValidationError as exc:
        raise UpstreamGenericError(
            f"{service} returned an unexpected bot payload.", payload=data
        ) from exc


def latest_status_code(status_changes: object) -> str:
    """Extract the latest code from a ``status_changes`` list."""
    if not isinstance(status_changes, list) or not status_changes:
        return "unknown"
    latest = status_changes[-1]
    if isinstance(latest, dict) and latest.get("code"):
        return str(latest["code"])
    return "unknown"
