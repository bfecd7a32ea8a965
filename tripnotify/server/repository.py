"""In-memory notification storage, newest first per recipient."""

from tripnotify.schemas.notification import NotificationItem


class InMemoryNotificationRepository:
    def __init__(self) -> None:
        self._by_recipient: dict[str, list[NotificationItem]] = {}

    def add(self, item: NotificationItem) -> None:
        self._by_recipient.setdefault(item.recipient_id, []).insert(0, item)

    def list_for(self, recipient_id: str, limit: int = 30) -> list[NotificationItem]:
        return list(self._by_recipient.get(recipient_id, [])[:limit])

    def mark_read(self, recipient_id: str, notification_id: str) -> bool:
        """Only the recipient's own notification is touched."""
        items = self._by_recipient.get(recipient_id, [])
        for idx, item in enumerate(items):
            if item.id == notification_id:
                if not item.is_read:
                    items[idx] = item.model_copy(update={"is_read": True})
                return True
        return False

    def mark_all_read(self, recipient_id: str) -> int:
        items = self._by_recipient.get(recipient_id, [])
        count = 0
        for idx, item in enumerate(items):
            if not item.is_read:
                items[idx] = item.model_copy(update={"is_read": True})
                count += 1
        return count

    def unread_count(self, recipient_id: str) -> int:
        return sum(1 for item in self._by_recipient.get(recipient_id, []) if not item.is_read)


# Module-level singleton
repository = InMemoryNotificationRepository()
