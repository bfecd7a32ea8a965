"""SSE (Server-Sent Events) connection manager for real-time notifications."""

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

import structlog

logger = structlog.get_logger()

HEARTBEAT_FRAME = ": keep-alive\n\n"


def encode_frame(event: str, data: Any) -> str:
    """One named event frame, terminated by a blank line."""
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


class SSEManager:
    """Manages SSE connections per user using asyncio.Queue."""

    def __init__(self) -> None:
        self._connections: dict[str, list[asyncio.Queue]] = {}

    async def connect(self, user_id: str) -> asyncio.Queue:
        """Register a new SSE connection for a user."""
        queue: asyncio.Queue = asyncio.Queue()
        self._connections.setdefault(user_id, []).append(queue)
        logger.info("sse_connected", user_id=user_id, total=len(self._connections[user_id]))
        return queue

    def disconnect(self, user_id: str, queue: asyncio.Queue) -> None:
        """Remove an SSE connection for a user."""
        if user_id in self._connections:
            try:
                self._connections[user_id].remove(queue)
            except ValueError:
                pass
            if not self._connections[user_id]:
                del self._connections[user_id]
        logger.info("sse_disconnected", user_id=user_id)

    async def push(self, user_id: str, event: dict[str, Any]) -> int:
        """Push an event to all SSE connections for a user. Returns how many received it."""
        queues = self._connections.get(user_id, [])
        for queue in queues:
            await queue.put(event)
        return len(queues)

    def connection_count(self, user_id: str) -> int:
        return len(self._connections.get(user_id, []))


async def event_stream(
    manager: SSEManager,
    user_id: str,
    heartbeat_seconds: float = 30.0,
) -> AsyncIterator[str]:
    """Yield encoded frames for one connection; a heartbeat comment when idle."""
    queue = await manager.connect(user_id)
    try:
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
                yield encode_frame(event.get("event", "message"), event.get("data"))
            except asyncio.TimeoutError:
                yield HEARTBEAT_FRAME
    finally:
        manager.disconnect(user_id, queue)


# Module-level singleton
sse_manager = SSEManager()
