"""MCP tool definitions (names, descriptions, input schemas)."""

from __future__ import annotations

from mcp.types import Tool

from src.meeting_gateway.gateway.schemas import DEFAULT_VOICE, Voice

_BOT_ID = {
    "type": "string",
    "description": "The bot ID returned from join_meeting",
}


def build_tool_definitions(default_bot_name: str = "Agent") -> list[Tool]:
    """Return the six meeting tools exposed by the server."""
    return [
        Tool(
            name="join_meeting",
            description=(
                "Join a Google Meet, Zoom, or Teams meeting as a named participant "
                "with voice capabilities"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "meeting_url": {
                        "type": "string",
                        "description": "Meeting URL or Google Meet code (e.g. abc-defg-hij)",
                    },
                    "bot_name": {
                        "type": "string",
                        "default": default_bot_name,
                        "description": "Display name in the meeting",
                    },
                },
                "required": ["meeting_url"],
            },
        ),
        Tool(
            name="get_transcript",
            description=(
                "Get new transcript lines from the meeting since last check. "
                "Call periodically to listen."
            ),
            inputSchema={
                "type": "object",
                "properties": {"bot_id": _BOT_ID},
                "required": ["bot_id"],
            },
        ),
        Tool(
            name="speak",
            description=(
                "Say something in the meeting via text-to-speech. Keep it concise; "
                "you're speaking out loud."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "bot_id": _BOT_ID,
                    "text": {
                        "type": "string",
                        "description": "What to say (1-3 sentences max; you're speaking, not writing)",
                    },
                    "voice": {
                        "type": "string",
                        "enum": [voice.value for voice in Voice],
                        "default": DEFAULT_VOICE.value,
                        "description": "TTS voice",
                    },
                },
                "required": ["bot_id", "text"],
            },
        ),
        Tool(
            name="send_chat",
            description="Send a text message in the meeting chat (visible to all participants)",
            inputSchema={
                "type": "object",
                "properties": {
                    "bot_id": _BOT_ID,
                    "message": {
                        "type": "string",
                        "description": "Message to post in meeting chat",
                    },
                },
                "required": ["bot_id", "message"],
            },
        ),
        Tool(
            name="bot_status",
            description="Check if the bot has been admitted to the meeting and is active",
            inputSchema={
                "type": "object",
                "properties": {"bot_id": _BOT_ID},
                "required": ["bot_id"],
            },
        ),
        Tool(
            name="leave_meeting",
            description="Remove the bot from the meeting",
            inputSchema={
                "type": "object",
                "properties": {"bot_id": _BOT_ID},
                "required": ["bot_id"],
            },
        ),
    ]
