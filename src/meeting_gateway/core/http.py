"""Shared async HTTP transport for upstream APIs.

UpstreamHTTPClient wraps httpx.AsyncClient with a per-call timeout, JSON
decoding, and error normalization. A fresh client is opened per request so
that each call carries its own timeout and no connection state outlives it.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.meeting_gateway.core.errors import (
    UpstreamConnectionError,
    UpstreamGenericError,
    UpstreamTimeoutError,
    normalize_http_error,
)

logger = structlog.get_logger(__name__)


class UpstreamHTTPClient:
    """Async request helper bound to one upstream service.

    Args:
        base_url: API root, e.g. ``https://api.recall.ai/api/v1``.
        headers: Headers sent with every request (auth, content type).
        credential: Environment variable name of the credential, used in
            authentication error messages.
        service: Short service name used in log events.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str],
        credential: str,
        service: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = headers
        self._credential = credential
        self._service = service
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        """Create a new httpx client with specified timeout."""
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=timeout,
            transport=self._transport,
        )

    async def _send(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        json: Any = None,
        bot_id: str | None = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            async with self._client(timeout) as client:
                response = await client.request(method, url, json=json)
        except httpx.TimeoutException as exc:
            logger.warning(
                "upstream.timeout",
                service=self._service,
                method=method,
                path=path,
                timeout=timeout,
            )
            raise UpstreamTimeoutError(
                f"{self._service} did not respond within {timeout:g}s."
            ) from exc
        except httpx.TransportError as exc:
            logger.warning(
                "upstream.unreachable",
                service=self._service,
                method=method,
                path=path,
                error=str(exc),
            )
            raise UpstreamConnectionError(
                f"Could not reach {self._service}: {exc}"
            ) from exc

        if response.is_success:
            return response

        payload = _decode_body(response)
        logger.warning(
            "upstream.error_response",
            service=self._service,
            method=method,
            path=path,
            status_code=response.status_code,
            bot_id=bot_id,
        )
        raise normalize_http_error(
            response.status_code,
            payload,
            credential=self._credential,
            bot_id=bot_id,
        )

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        json: Any = None,
        bot_id: str | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Returns None for an empty body.

        Raises:
            UpstreamTimeoutError: The call exceeded ``timeout``.
            UpstreamConnectionError: The host could not be reached.
            UpstreamError: Normalized failure for any non-2xx status.
            UpstreamGenericError: A 2xx body that is not valid JSON.
        """
        response = await self._send(method, path, timeout=timeout, json=json, bot_id=bot_id)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamGenericError(
                f"{self._service} returned a non-JSON response.",
                status_code=response.status_code,
                payload=response.text,
            ) from exc

    async def request_bytes(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        json: Any = None,
    ) -> bytes:
        """Send a request and return the raw response body."""
        response = await self._send(method, path, timeout=timeout, json=json)
        return response.content


def _decode_body(response: httpx.Response) -> Any:
    """Decode an error body as JSON when possible, else return its text."""
    try:
        return response.json()
    except ValueError:
        return response.text
