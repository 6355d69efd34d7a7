"""Meeting reference normalization."""

from __future__ import annotations

import re

GOOGLE_MEET_BASE = "https://meet.google.com/"

_MEET_CODE = re.compile(r"^[a-z]{3}-[a-z]{4}-[a-z]{3}$")


def normalize_meeting_url(meeting_url: str) -> str:
    """Turn a bare Google Meet code into a full URL.

    ``abc-defg-hij`` becomes ``https://meet.google.com/abc-defg-hij``. Any
    other value without an ``http`` scheme is assumed to be a meeting code
    too and gets the same prefix; URLs pass through unchanged.
    """
    url = meeting_url.strip()
    if _MEET_CODE.match(url) or not url.startswith("http"):
        return f"{GOOGLE_MEET_BASE}{url}"
    return url
