"""Error taxonomy and upstream HTTP error normalization.

Every failure the gateway can report is a MeetingGatewayError subclass whose
``str()`` is the human-readable message handed back to the calling agent.
Both upstream backends raise through normalize_http_error(), so tool
handlers never branch on backend-specific error shapes.

Exports:
    MeetingGatewayError: Base class for all gateway failures.
    StartupConfigurationError: No usable credential set (fatal).
    UnknownSessionError: Tool referenced a bot id this process never created.
    UpstreamError: Base class for failures originating upstream.
    normalize_http_error: Map an HTTP status and payload to an UpstreamError.
"""

from __future__ import annotations

import json
from typing import Any


class MeetingGatewayError(Exception):
    """Base class for gateway failures reported to the caller as text."""


class StartupConfigurationError(MeetingGatewayError):
    """Raised at startup when neither credential set is complete."""


class UnknownSessionError(MeetingGatewayError):
    """Raised when a tool references a bot id missing from the registry."""

    def __init__(self, bot_id: str) -> None:
        self.bot_id = bot_id
        super().__init__(f"Unknown bot ID: {bot_id}. Call join_meeting first.")


class UpstreamError(MeetingGatewayError):
    """Base class for failures returned by (or talking to) an upstream API.

    Args:
        message: Human-readable description.
        status_code: HTTP status code, if a response was received.
        payload: Decoded response body, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class UpstreamAuthError(UpstreamError):
    """401 -- the configured credential was rejected."""


class UpstreamForbiddenError(UpstreamError):
    """403 -- the credential may not act on this bot."""


class UpstreamNotFoundError(UpstreamError):
    """404 -- the bot does not exist upstream (usually already left)."""


class UpstreamRateLimitedError(UpstreamError):
    """429 -- upstream is throttling requests."""


class UpstreamServiceError(UpstreamError):
    """5xx -- upstream service failure."""


class UpstreamConnectionError(UpstreamServiceError):
    """The upstream host could not be reached."""


class UpstreamTimeoutError(UpstreamError):
    """The upstream call exceeded its timeout."""


class UpstreamGenericError(UpstreamError):
    """Any other non-2xx response."""


_DETAIL_KEYS = ("detail", "message", "error")


def extract_detail(payload: Any) -> str:
    """Pick the most descriptive detail from an upstream error payload.

    Uses the first of ``detail``/``message``/``error`` found on a JSON
    object; otherwise renders the whole payload.
    """
    if isinstance(payload, dict):
        for key in _DETAIL_KEYS:
            value = payload.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)
    if payload is None:
        return ""
    if isinstance(payload, (bytes, bytearray)):
        return payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        return payload
    return json.dumps(payload)


def normalize_http_error(
    status_code: int,
    payload: Any,
    *,
    credential: str,
    bot_id: str | None = None,
) -> UpstreamError:
    """Map an upstream HTTP status and body to a stable failure category.

    Args:
        status_code: Non-2xx HTTP status returned upstream.
        payload: Decoded JSON body, or raw text when the body is not JSON.
        credential: Environment variable name of the credential in use,
            named in authentication failures.
        bot_id: Bot the request acted on, if any.

    Returns:
        The UpstreamError subclass instance for this status (not raised).
    """
    subject = f"bot {bot_id}" if bot_id else "this resource"
    kwargs = {"status_code": status_code, "payload": payload}

    if status_code == 401:
        return UpstreamAuthError(
            f"Authentication failed (401). Check that {credential} is set to a valid token.",
            **kwargs,
        )
    if status_code == 403:
        return UpstreamForbiddenError(
            f"Not authorized to access {subject} (403).",
            **kwargs,
        )
    if status_code == 404:
        return UpstreamNotFoundError(
            f"{subject[0].upper()}{subject[1:]} not found (404). It has likely already left the meeting.",
            **kwargs,
        )
    if status_code == 429:
        return UpstreamRateLimitedError(
            "Rate limited by upstream API (429). Wait a moment and retry.",
            **kwargs,
        )
    if 500 <= status_code < 600:
        return UpstreamServiceError(
            f"Upstream service error ({status_code}). This is usually transient; try again.",
            **kwargs,
        )
    return UpstreamGenericError(
        f"API error {status_code}: {extract_detail(payload)}",
        **kwargs,
    )
