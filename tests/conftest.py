"""Shared test fixtures for the tripnotify test suite."""

import asyncio
import json
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from tripnotify.schemas.notification import NotificationItem, parse_notification
from tripnotify.server.auth import CurrentUser, get_current_user
from tripnotify.server.main import create_app
from tripnotify.server.repository import InMemoryNotificationRepository
from tripnotify.server.router import get_repository, get_sse_manager
from tripnotify.server.sse import SSEManager

SAMPLE_USER_ID = "user_test_clerk_123"
SAMPLE_ACTOR_ID = "user_test_actor_456"


# ── Sample data ──────────────────────────────────────────────────────────────


def notification_payload(
    id: str = "n1",
    *,
    type: str = "love",
    is_read: bool = False,
    **overrides: Any,
) -> dict[str, Any]:
    """camelCase wire payload, as the service sends it."""
    payload: dict[str, Any] = {
        "id": id,
        "recipientId": SAMPLE_USER_ID,
        "actorId": SAMPLE_ACTOR_ID,
        "actorName": "Sara",
        "type": type,
        "message": "Sara loved your trip",
        "tripId": "trip-1",
        "isRead": is_read,
        "createdAt": "2026-10-18T12:00:00+00:00",
    }
    payload.update(overrides)
    return payload


def make_item(id: str = "n1", **kwargs: Any) -> NotificationItem:
    return parse_notification(notification_payload(id, **kwargs))


def sse_frame(payload: dict[str, Any], event: str = "notification") -> str:
    return f"event: {event}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


# ── Service fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def repo() -> InMemoryNotificationRepository:
    return InMemoryNotificationRepository()


@pytest.fixture
def manager() -> SSEManager:
    return SSEManager()


@pytest.fixture
def app(repo: InMemoryNotificationRepository, manager: SSEManager):
    application = create_app()
    application.dependency_overrides[get_current_user] = lambda: CurrentUser(user_id=SAMPLE_USER_ID)
    application.dependency_overrides[get_repository] = lambda: repo
    application.dependency_overrides[get_sse_manager] = lambda: manager
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Stream fakes ─────────────────────────────────────────────────────────────


class Stream:
    """One scripted connection: yields chunks, then ends or stays open."""

    def __init__(self, *chunks: str | bytes, hold_open: bool = False) -> None:
        self.chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.hold_open = hold_open


class ScriptedTransport:
    """Each connect() consumes the next entry: an exception to raise or a Stream to serve.

    Once the script runs out every connection stays open and silent.
    """

    def __init__(self, script: list[Exception | Stream] | None = None) -> None:
        self.script = list(script or [])
        self.tokens: list[str | None] = []
        self.closed = 0
        self.aclosed = False

    @property
    def connects(self) -> int:
        return len(self.tokens)

    @asynccontextmanager
    async def connect(self, token):
        self.tokens.append(token)
        entry = self.script.pop(0) if self.script else Stream(hold_open=True)
        if isinstance(entry, Exception):
            raise entry

        async def body():
            for chunk in entry.chunks:
                yield chunk
                await asyncio.sleep(0)
            if entry.hold_open:
                await asyncio.Event().wait()

        try:
            yield body()
        finally:
            self.closed += 1

    async def aclose(self) -> None:
        self.aclosed = True


async def until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)
