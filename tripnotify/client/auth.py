"""Session token providers.

A provider is an async callable returning a fresh bearer token, or None when
nobody is signed in. Tokens are short-lived, so callers ask for one before
every request and every connection attempt.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import httpx
import structlog

from tripnotify.core.config import settings

logger = structlog.get_logger()

TokenProvider = Callable[[], Awaitable[str | None]]

_SIGNED_OUT_STATUSES = {401, 404, 410}


def static_token(token: str | None) -> TokenProvider:
    """Provider that always returns the same token (CLI use, tests)."""

    async def _provider() -> str | None:
        return token or None

    return _provider


class ClerkSessionTokenProvider:
    """Mints a session JWT per call through Clerk's backend API."""

    def __init__(
        self,
        session_id: str,
        *,
        secret_key: str | None = None,
        api_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.session_id = session_id
        self._secret_key = secret_key or settings.CLERK_SECRET_KEY
        self._api_url = (api_url or settings.CLERK_API_URL).rstrip("/")
        self._client = client

    async def __call__(self) -> str | None:
        if not self.session_id or not self._secret_key:
            return None
        url = f"{self._api_url}/sessions/{self.session_id}/tokens"
        headers = {"Authorization": f"Bearer {self._secret_key}"}

        if self._client is not None:
            response = await self._client.post(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(url, headers=headers)

        if response.status_code in _SIGNED_OUT_STATUSES:
            logger.info("clerk_session_inactive", session_id=self.session_id, status=response.status_code)
            return None
        response.raise_for_status()
        return response.json().get("jwt")
