"""Long-lived HTTP transport for the notification event stream."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import structlog

from tripnotify.core.config import settings
from tripnotify.core.errors import StreamConnectError

logger = structlog.get_logger()

STREAM_PATH = "/api/notifications/stream"


class StreamTransport:
    """Opens the server-push connection; the body is read incrementally, never to completion."""

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        *,
        stream_path: str = STREAM_PATH,
        connect_timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.stream_path = stream_path
        self._owns_client = client is None
        timeout = httpx.Timeout(
            connect=connect_timeout or settings.STREAM_CONNECT_TIMEOUT_SECONDS,
            read=None,  # the response is unbounded in duration
            write=10.0,
            pool=10.0,
        )
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.stream_path}"

    @asynccontextmanager
    async def connect(self, token: str | None) -> AsyncIterator[AsyncIterator[bytes]]:
        """Yield an iterator over raw body chunks. Leaving the block aborts the connection."""
        headers = {
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        async with self._client.stream("GET", self.url, headers=headers, timeout=self._timeout) as response:
            if not response.is_success:
                body = await response.aread()
                raise StreamConnectError(
                    response.status_code,
                    body.decode("utf-8", errors="replace")[:500] if body else None,
                )
            logger.info("notification_stream_opened", url=self.url, status=response.status_code)
            yield response.aiter_bytes()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
