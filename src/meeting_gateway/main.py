"""Process entry point.

Loads settings, configures logging, selects the upstream mode (exiting with
status 1 when no credential set is complete), then serves MCP over stdio.
Registered bots are released when the stream closes or a termination
signal arrives.
"""

from __future__ import annotations

import asyncio
import contextlib
import sys

import structlog

from src.meeting_gateway.config import Settings, get_settings
from src.meeting_gateway.core.errors import StartupConfigurationError
from src.meeting_gateway.core.logging import configure_structlog
from src.meeting_gateway.gateway.backend import MeetingBackend
from src.meeting_gateway.gateway.selector import select_backend
from src.meeting_gateway.lifecycle import LifecycleManager
from src.meeting_gateway.server import MeetingMCPServer
from src.meeting_gateway.sessions.registry import SessionRegistry
from src.meeting_gateway.tools.handlers import MeetingToolHandlers

logger = structlog.get_logger(__name__)


def build_server(
    settings: Settings, backend: MeetingBackend, registry: SessionRegistry
) -> MeetingMCPServer:
    """Wire handlers and the MCP server around an already-selected backend."""
    handlers = MeetingToolHandlers(
        backend=backend,
        registry=registry,
        retry_backoff=settings.RETRY_BACKOFF_SECONDS,
        default_bot_name=settings.DEFAULT_BOT_NAME,
        default_voice=settings.DEFAULT_VOICE,
    )
    return MeetingMCPServer(
        handlers,
        server_name=settings.SERVER_NAME,
        version=settings.SERVER_VERSION,
        default_bot_name=settings.DEFAULT_BOT_NAME,
    )


async def serve(settings: Settings, backend: MeetingBackend) -> None:
    """Serve until stdin closes or a termination signal, then release bots."""
    registry = SessionRegistry()
    server = build_server(settings, backend, registry)
    lifecycle = LifecycleManager(
        registry,
        backend,
        timeout=settings.SHUTDOWN_TIMEOUT,
        concurrency=settings.SHUTDOWN_CONCURRENCY,
    )

    serve_task = asyncio.create_task(server.run_stdio())
    lifecycle.install_signal_handlers(serve_task)
    try:
        with contextlib.suppress(asyncio.CancelledError):
            await serve_task
    finally:
        await lifecycle.shutdown()


def main() -> int:
    """Console script entry point."""
    settings = get_settings()
    configure_structlog(settings)

    try:
        backend = select_backend(settings)
    except StartupConfigurationError as exc:
        logger.error("startup.configuration_error", error=str(exc))
        print(str(exc), file=sys.stderr)
        return 1

    asyncio.run(serve(settings, backend))
    return 0


if __name__ == "__main__":
    sys.exit(main())
