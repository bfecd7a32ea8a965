"""Notification schemas package."""

from tripnotify.schemas.notification import (
    NotificationItem,
    NotificationType,
    dump_notification,
    parse_notification,
)

__all__ = [
    "NotificationItem",
    "NotificationType",
    "dump_notification",
    "parse_notification",
]
