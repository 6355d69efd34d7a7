"""Tenacity retry policies for upstream calls.

Two policies exist:

- read_retrying: idempotent reads (transcript, status). Several attempts with
  exponential backoff, only on transient failures (5xx, unreachable, timeout).
- single_retrying: speak and send_chat. Exactly one extra attempt after a
  fixed backoff, on any upstream failure. A duplicate utterance is preferred
  over a silently lost one.

Bot creation and leave are never retried.
"""

from __future__ import annotations

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from src.meeting_gateway.core.errors import (
    UpstreamError,
    UpstreamServiceError,
    UpstreamTimeoutError,
)

logger = structlog.get_logger(__name__)

TRANSIENT_ERRORS = (UpstreamServiceError, UpstreamTimeoutError)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info(
        "upstream.retrying",
        attempt=retry_state.attempt_number,
        error=str(exc) if exc else None,
        wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
    )


def read_retrying(attempts: int = 3, wait: float = 1.0) -> AsyncRetrying:
    """Retry policy for idempotent reads.

    Args:
        attempts: Total attempts including the first call.
        wait: Base wait in seconds; doubles per attempt, capped at 10x.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential(multiplier=wait, min=wait, max=wait * 10),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=_log_retry,
        reraise=True,
    )


def single_retrying(backoff: float = 2.0) -> AsyncRetrying:
    """Retry policy allowing exactly one retry after a fixed backoff."""
    return AsyncRetrying(
        stop=stop_after_attempt(2),
        wait=wait_fixed(backoff),
        retry=retry_if_exception_type(UpstreamError),
        before_sleep=_log_retry,
        reraise=True,
    )
