"""Reconnect supervisor: keeps one notification stream alive until torn down.

State machine::

    idle -> connecting -> live -> reconnecting -> connecting -> ...
    any  -> terminated   (teardown, or retry policy exhausted)

A clean end of stream is handled exactly like an error: the server may close
idle connections deliberately, and the client simply reconnects.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

from tripnotify.client.auth import TokenProvider
from tripnotify.client.parser import FrameParser, decode_notification
from tripnotify.core.config import settings
from tripnotify.core.errors import StreamConnectError
from tripnotify.schemas.notification import NotificationItem

logger = structlog.get_logger()


class ConnectionState(str, enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    LIVE = "live"
    RECONNECTING = "reconnecting"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval retry. max_attempts=None retries forever."""

    delay_seconds: float = 5.0
    max_attempts: int | None = None

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            delay_seconds=settings.STREAM_RECONNECT_DELAY_SECONDS,
            max_attempts=settings.STREAM_RECONNECT_MAX_ATTEMPTS,
        )

    def exhausted(self, consecutive_failures: int) -> bool:
        return self.max_attempts is not None and consecutive_failures >= self.max_attempts


class Transport(Protocol):
    def connect(self, token: str | None) -> contextlib.AbstractAsyncContextManager[Any]: ...


class ReconnectSupervisor:
    """Drives transport -> parser -> callback, reconnecting on any failure."""

    def __init__(
        self,
        transport: Transport,
        token_provider: TokenProvider,
        on_notification: Callable[[NotificationItem], None],
        policy: RetryPolicy | None = None,
        *,
        on_state_change: Callable[[ConnectionState, ConnectionState], None] | None = None,
        parser_factory: Callable[[], FrameParser] = FrameParser,
    ) -> None:
        self._transport = transport
        self._token_provider = token_provider
        self._on_notification = on_notification
        self._on_state_change = on_state_change
        self._parser = parser_factory()
        self.policy = policy or RetryPolicy.from_settings()

        self._state = ConnectionState.IDLE
        self._state_changed = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self._failures = 0
        self.attempts = 0

    # ── Public surface ───────────────────────────────────────────────────────

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_streaming(self) -> bool:
        return self._state == ConnectionState.LIVE

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        if self._cancelled or self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="notification-stream")

    def cancel(self) -> None:
        """Request teardown without waiting. Safe to call from a callback."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def close(self) -> None:
        """Tear down: abort the read, drop the connection, clear any pending retry. Idempotent."""
        self.cancel()
        task, self._task = self._task, None
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._state != ConnectionState.TERMINATED:
            self._transition(ConnectionState.TERMINATED, force=True)

    async def wait_for_state(self, state: ConnectionState, timeout: float | None = None) -> None:
        async def _wait() -> None:
            while self._state != state:
                self._state_changed.clear()
                await self._state_changed.wait()

        await asyncio.wait_for(_wait(), timeout)

    # ── Loop ─────────────────────────────────────────────────────────────────

    async def _run(self) -> None:
        while not self._cancelled:
            self._transition(ConnectionState.CONNECTING)
            self.attempts += 1
            try:
                await self._connect_once()
                if self._cancelled:
                    return
                logger.info("notification_stream_closed_by_server", attempt=self.attempts)
            except Exception as exc:
                if self._cancelled:
                    return
                logger.warning(
                    "notification_stream_error",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    attempt=self.attempts,
                )

            self._failures += 1
            if self.policy.exhausted(self._failures):
                logger.error("notification_stream_gave_up", consecutive_failures=self._failures)
                self._transition(ConnectionState.TERMINATED)
                return

            self._transition(ConnectionState.RECONNECTING)
            await asyncio.sleep(self.policy.delay_seconds)

    async def _connect_once(self) -> None:
        token = await self._token_provider()
        if self._cancelled:
            return
        if not token:
            raise StreamConnectError(401, "No session token available")

        # a partial frame from the previous connection must not leak into this one
        parser = self._parser
        parser.reset()
        async with self._transport.connect(token) as chunks:
            if self._cancelled:
                return
            self._failures = 0
            self._transition(ConnectionState.LIVE)
            async for chunk in chunks:
                if self._cancelled:
                    return
                for frame in parser.feed(chunk):
                    item = decode_notification(frame)
                    if item is None:
                        continue
                    if self._cancelled:
                        return
                    self._dispatch(item)

    def _dispatch(self, item: NotificationItem) -> None:
        try:
            self._on_notification(item)
        except Exception as exc:
            logger.error("notification_handler_failed", notification_id=item.id, error=str(exc))

    def _transition(self, state: ConnectionState, *, force: bool = False) -> None:
        if self._cancelled and not force:
            return
        previous = self._state
        if previous == state:
            return
        self._state = state
        self._state_changed.set()
        logger.debug("notification_stream_state", previous=previous.value, state=state.value)
        if self._on_state_change is not None:
            try:
                self._on_state_change(previous, state)
            except Exception as exc:
                logger.error("state_change_handler_failed", state=state.value, error=str(exc))
