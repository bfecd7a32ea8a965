"""NotificationSession: one signed-in user's live notification feed.

Ties together the bulk fetch, the reconnecting stream and the store, and
exposes what a UI needs: the list, the unread count, the live flag and the
two acknowledgement calls. Nothing here raises to the caller; failures are
logged and either retried (stream), dropped (bad frames) or tolerated
(acknowledgements).

Acknowledgements are optimistic: the store is updated first and the server
call is best-effort. A failed call is logged and the local read state is
kept; notifications are low-stakes and the next bulk fetch reconciles.
"""

from __future__ import annotations

import asyncio
import contextlib

import structlog

from tripnotify.client.api import NotificationsAPI
from tripnotify.client.auth import TokenProvider
from tripnotify.client.store import NotificationStore
from tripnotify.client.supervisor import ConnectionState, ReconnectSupervisor, RetryPolicy
from tripnotify.client.transport import StreamTransport
from tripnotify.core.config import settings
from tripnotify.schemas.notification import NotificationItem

logger = structlog.get_logger()


class NotificationSession:
    def __init__(
        self,
        token_provider: TokenProvider,
        *,
        base_url: str | None = None,
        api: NotificationsAPI | None = None,
        transport: StreamTransport | None = None,
        store: NotificationStore | None = None,
        policy: RetryPolicy | None = None,
        initial_limit: int | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._owns_api = api is None
        self._owns_transport = transport is None
        self.api = api or NotificationsAPI(base_url)
        self.transport = transport or StreamTransport(base_url)
        self.store = store or NotificationStore()
        self.initial_limit = initial_limit or settings.NOTIFICATIONS_INITIAL_LIMIT

        self._supervisor = ReconnectSupervisor(
            self.transport,
            token_provider,
            self._handle_notification,
            policy,
            on_state_change=self._handle_state_change,
        )
        self._refresh_task: asyncio.Task[None] | None = None
        self._has_been_live = False
        self._started = False
        self._closed = False

    # ── UI surface ───────────────────────────────────────────────────────────

    @property
    def notifications(self) -> tuple[NotificationItem, ...]:
        return self.store.items

    @property
    def unread_count(self) -> int:
        return self.store.unread_count

    @property
    def is_streaming(self) -> bool:
        return self._supervisor.is_streaming

    @property
    def state(self) -> ConnectionState:
        return self._supervisor.state

    @property
    def supervisor(self) -> ReconnectSupervisor:
        return self._supervisor

    # ── Lifecycle ────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Initial bulk load, then the live stream. Signed out: stay inactive."""
        if self._closed or self._started:
            return
        token = await self._token()
        if not token:
            self.store.clear()
            logger.info("notifications_inactive", reason="signed_out")
            return
        self._started = True
        await self._load(token)
        if not self._closed:
            self._supervisor.start()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._supervisor.close()
        task, self._refresh_task = self._refresh_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.store.close()
        if self._owns_api:
            await self.api.aclose()
        if self._owns_transport:
            await self.transport.aclose()
        logger.info("notification_session_closed")

    async def __aenter__(self) -> NotificationSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Operations ───────────────────────────────────────────────────────────

    async def refresh(self) -> None:
        """Replace the list with the latest bulk fetch."""
        if self._closed:
            return
        token = await self._token()
        if self._closed:
            return
        if not token:
            self.store.clear()
            return
        await self._load(token)

    async def mark_as_read(self, notification_id: str) -> None:
        if self._closed:
            return
        token = await self._token()
        if not token or self._closed:
            return
        self.store.mark_read(notification_id)
        try:
            await self.api.mark_read(token, notification_id)
        except Exception as exc:
            logger.warning("notification_ack_failed", notification_id=notification_id, error=str(exc))

    async def mark_all_as_read(self) -> None:
        if self._closed:
            return
        token = await self._token()
        if not token or self._closed:
            return
        self.store.mark_all_read()
        try:
            await self.api.mark_all_read(token)
        except Exception as exc:
            logger.warning("notification_ack_all_failed", error=str(exc))

    # ── Internals ────────────────────────────────────────────────────────────

    async def _token(self) -> str | None:
        try:
            return await self._token_provider()
        except Exception as exc:
            logger.warning("session_token_unavailable", error=str(exc))
            return None

    async def _load(self, token: str) -> None:
        try:
            items = await self.api.list_notifications(token, self.initial_limit)
        except Exception as exc:
            logger.error("notifications_refresh_failed", error=str(exc))
            return
        if self._closed:
            return
        self.store.replace_all(items)
        logger.info("notifications_loaded", count=len(items), unread=self.store.unread_count)

    def _handle_notification(self, item: NotificationItem) -> None:
        if self._closed:
            return
        self.store.prepend(item)

    def _handle_state_change(self, previous: ConnectionState, state: ConnectionState) -> None:
        if state != ConnectionState.LIVE or self._closed:
            return
        if self._has_been_live:
            # back after a gap: catch up on anything missed while disconnected
            self._schedule_refresh()
        self._has_been_live = True

    def _schedule_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.create_task(self.refresh(), name="notification-refresh")
