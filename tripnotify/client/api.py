"""REST client for the notification service: bulk fetch and read acknowledgements."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from tripnotify.core.config import settings
from tripnotify.core.errors import NotificationsAPIError
from tripnotify.schemas.notification import NotificationItem, parse_notification

logger = structlog.get_logger()

NOTIFICATIONS_PATH = "/api/notifications"


class NotificationsAPI:
    """Thin async wrapper over the notification endpoints. Every call takes a bearer token."""

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.HTTP_TIMEOUT_SECONDS)

    async def list_notifications(self, token: str | None, limit: int | None = None) -> list[NotificationItem]:
        """Newest first. Items that fail validation are logged and skipped."""
        limit = limit or settings.NOTIFICATIONS_INITIAL_LIMIT
        data = await self._request("GET", "", token, params={"limit": limit})
        if not isinstance(data, list):
            raise NotificationsAPIError(200, "Expected a list of notifications")

        items: list[NotificationItem] = []
        for raw in data:
            try:
                items.append(parse_notification(raw))
            except ValidationError as exc:
                logger.warning(
                    "notification_item_invalid",
                    notification_id=raw.get("id") if isinstance(raw, dict) else None,
                    errors=exc.error_count(),
                )
        return items

    async def mark_read(self, token: str | None, notification_id: str) -> None:
        await self._request("POST", f"/{notification_id}/read", token)

    async def mark_all_read(self, token: str | None) -> None:
        await self._request("POST", "/read-all", token)

    async def unread_count(self, token: str | None) -> int:
        data = await self._request("GET", "/unread-count", token)
        return int((data or {}).get("count", 0))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: str | None,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        url = f"{self.base_url}{NOTIFICATIONS_PATH}{path}"
        response = await self._client.request(method, url, headers=headers, params=params)
        if not response.is_success:
            raise NotificationsAPIError(
                response.status_code,
                response.text[:500] if response.text else None,
            )
        return response.json() if response.content else None
