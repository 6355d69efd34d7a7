"""
MCP Meeting Gateway Server - main server implementation.

Exposes the meeting bot tools over the Model Context Protocol on stdio, the
transport used by local agent hosts.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from src.meeting_gateway.tools.definitions import build_tool_definitions
from src.meeting_gateway.tools.handlers import MeetingToolHandlers

logger = structlog.get_logger(__name__)


class MeetingMCPServer:
    """
    MCP server for meeting bot tools.

    Registers the tool list and a single call_tool dispatcher on the MCP SDK
    server. Every tool call resolves to exactly one text result; missing
    arguments and unknown tools are reported as text, not protocol errors.
    """

    def __init__(
        self,
        handlers: MeetingToolHandlers,
        server_name: str = "groupthink-meeting",
        version: str = "0.1.0",
        default_bot_name: str = "Agent",
    ) -> None:
        self.handlers = handlers
        self.server_name = server_name
        self.version = version
        self._tools = build_tool_definitions(default_bot_name)
        self._routes: dict[str, tuple[tuple[str, ...], Callable[..., Awaitable[str]]]] = {
            "join_meeting": (("meeting_url",), self._join_meeting),
            "get_transcript": (("bot_id",), self._get_transcript),
            "speak": (("bot_id", "text"), self._speak),
            "send_chat": (("bot_id", "message"), self._send_chat),
            "bot_status": (("bot_id",), self._bot_status),
            "leave_meeting": (("bot_id",), self._leave_meeting),
        }
        self._server = Server(server_name, version=version)
        self._register_tools()

    @property
    def tools(self) -> list[Tool]:
        return list(self._tools)

    def _register_tools(self) -> None:
        """Register list_tools and call_tool handlers with the SDK server"""

        @self._server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.tools

        @self._server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
            text = await self.dispatch(name, arguments or {})
            return [TextContent(type="text", text=text)]

    async def dispatch(self, name: str, arguments: dict[str, Any]) -> str:
        """Route one tool call to its handler and return the text result."""
        route = self._routes.get(name)
        if route is None:
            logger.warning("tool.unknown", tool=name)
            return f"Unknown tool: {name}"

        required, handler = route
        missing = [key for key in required if not isinstance(arguments.get(key), str)]
        if missing:
            return f"Missing required argument(s) for {name}: {', '.join(missing)}"

        logger.info("tool.called", tool=name, bot_id=arguments.get("bot_id"))
        return await handler(arguments)

    async def _join_meeting(self, args: dict[str, Any]) -> str:
        return await self.handlers.join_meeting(args["meeting_url"], args.get("bot_name"))

    async def _get_transcript(self, args: dict[str, Any]) -> str:
        return await self.handlers.get_transcript(args["bot_id"])

    async def _speak(self, args: dict[str, Any]) -> str:
        return await self.handlers.speak(args["bot_id"], args["text"], args.get("voice"))

    async def _send_chat(self, args: dict[str, Any]) -> str:
        return await self.handlers.send_chat(args["bot_id"], args["message"])

    async def _bot_status(self, args: dict[str, Any]) -> str:
        return await self.handlers.bot_status(args["bot_id"])

    async def _leave_meeting(self, args: dict[str, Any]) -> str:
        return await self.handlers.leave_meeting(args["bot_id"])

    async def run_stdio(self) -> None:
        """Serve over stdio until the client closes the stream."""
        logger.info("server.starting", server=self.server_name, transport="stdio")
        async with stdio_server() as (read_stream, write_stream):
            await self._server.run(
                read_stream,
                write_stream,
                self._server.create_initialization_options(),
            )
        logger.info("server.stream_closed")
