"""Notification service: create, store and push over SSE."""

import uuid
from datetime import datetime, timezone

import structlog

from tripnotify.schemas.notification import NotificationItem, dump_notification, parse_notification
from tripnotify.server.repository import InMemoryNotificationRepository
from tripnotify.server.schemas import NotificationCreate
from tripnotify.server.sse import SSEManager

logger = structlog.get_logger()


async def create_notification(
    repo: InMemoryNotificationRepository,
    manager: SSEManager,
    data: NotificationCreate,
) -> NotificationItem | None:
    """Create a notification and push it via SSE.

    Returns None without storing anything when there is no recipient or the
    actor would be notifying themselves.
    """
    if not data.recipient_id or data.recipient_id == data.actor_id:
        return None

    raw = data.model_dump(exclude_none=True)
    raw["type"] = data.type.value
    raw["id"] = uuid.uuid4().hex
    raw["created_at"] = datetime.now(timezone.utc)
    notification = parse_notification(raw)
    repo.add(notification)

    try:
        delivered = await manager.push(notification.recipient_id, {
            "event": "notification",
            "data": dump_notification(notification),
        })
        logger.info(
            "notification_created",
            notification_id=notification.id,
            type=notification.type,
            delivered=delivered,
        )
    except Exception as exc:
        logger.error("notification_push_failed", notification_id=notification.id, error=str(exc))

    return notification
