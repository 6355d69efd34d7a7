"""Shutdown handling: release every registered bot before exiting.

On SIGINT/SIGTERM (or when the stdio stream closes) the registry is drained
and a leave request is sent for each bot concurrently. Individual failures
are logged and ignored; the whole fan-out is capped by a timeout so a hung
upstream cannot block exit.
"""

from __future__ import annotations

import asyncio
import signal

import structlog

from src.meeting_gateway.gateway.backend import MeetingBackend
from src.meeting_gateway.sessions.registry import SessionRegistry

logger = structlog.get_logger(__name__)


class LifecycleManager:
    """Best-effort bot cleanup at process shutdown.

    Args:
        registry: Session registry to drain.
        backend: Backend used to send leave requests.
        timeout: Ceiling in seconds for the whole fan-out.
        concurrency: Maximum simultaneous leave requests.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        backend: MeetingBackend,
        timeout: float = 35.0,
        concurrency: int = 10,
    ) -> None:
        self._registry = registry
        self._backend = backend
        self._timeout = timeout
        self._concurrency = max(concurrency, 1)
        self._shutdown_started = False

    def install_signal_handlers(self, serve_task: asyncio.Task) -> None:
        """Cancel ``serve_task`` on SIGINT/SIGTERM so shutdown() can run."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig, serve_task)
            except (NotImplementedError, RuntimeError):
                # Platforms without loop signal support (e.g. Windows)
                logger.debug("shutdown.signal_handler_unavailable", signal=sig.name)

    def _on_signal(self, sig: signal.Signals, serve_task: asyncio.Task) -> None:
        logger.info("shutdown.signal_received", signal=sig.name)
        serve_task.cancel()

    async def shutdown(self) -> dict[str, int]:
        """Leave every registered bot; never raises.

        Returns:
            Counts of ``released`` and ``failed`` bots (timed-out ones
            count as failed).
        """
        if self._shutdown_started:
            return {"released": 0, "failed": 0}
        self._shutdown_started = True

        sessions = await self._registry.drain()
        if not sessions:
            logger.info("shutdown.no_active_bots")
            return {"released": 0, "failed": 0}

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _leave(bot_id: str) -> None:
            async with semaphore:
                await self._backend.leave(bot_id)

        bot_ids = [session.bot_id for session in sessions]
        logger.info("shutdown.releasing_bots", bot_count=len(bot_ids))

        tasks = [asyncio.create_task(_leave(bot_id)) for bot_id in bot_ids]
        _, pending = await asyncio.wait(tasks, timeout=self._timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        released = 0
        failed = 0
        for bot_id, task in zip(bot_ids, tasks):
            if task in pending:
                failed += 1
                logger.warning("shutdown.leave_timed_out", bot_id=bot_id)
            elif task.exception() is not None:
                failed += 1
                logger.warning(
                    "shutdown.leave_failed",
                    bot_id=bot_id,
                    error=str(task.exception()),
                )
            else:
                released += 1

        logger.info("shutdown.complete", released=released, failed=failed)
        return {"released": released, "failed": failed}
