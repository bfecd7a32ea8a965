"""In-memory notification list for one signed-in session.

The list is ordered newest first and bounded; the unread count is always
derived from the list, never tracked separately.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

import structlog

from tripnotify.core.config import settings
from tripnotify.schemas.notification import NotificationItem

logger = structlog.get_logger()

StoreListener = Callable[["NotificationStore"], None]


class NotificationStore:
    """Bounded, newest-first list of notifications with a derived unread count."""

    def __init__(self, max_items: int | None = None) -> None:
        self.max_items = settings.NOTIFICATIONS_WINDOW_SIZE if max_items is None else max_items
        if self.max_items < 1:
            raise ValueError("max_items must be at least 1")
        self._items: list[NotificationItem] = []
        self._listeners: list[StoreListener] = []
        self._closed = False

    # ── Reads ────────────────────────────────────────────────────────────────

    @property
    def items(self) -> tuple[NotificationItem, ...]:
        return tuple(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._items if not item.is_read)

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, notification_id: str) -> NotificationItem | None:
        return next((item for item in self._items if item.id == notification_id), None)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[NotificationItem]:
        return iter(tuple(self._items))

    # ── Mutations ────────────────────────────────────────────────────────────

    def replace_all(self, items: Iterable[NotificationItem]) -> None:
        if self._closed:
            return
        self._items = list(items)[: self.max_items]
        self._notify()

    def prepend(self, item: NotificationItem) -> None:
        if self._closed:
            return
        self._items.insert(0, item)
        del self._items[self.max_items:]
        self._notify()

    def mark_read(self, notification_id: str) -> bool:
        """Mark one notification read. Returns False if missing or already read.

        Duplicates of the same id (possible across a reconnect) are all marked.
        """
        if self._closed:
            return False
        changed = False
        for idx, item in enumerate(self._items):
            if item.id == notification_id and not item.is_read:
                self._items[idx] = item.model_copy(update={"is_read": True})
                changed = True
        if changed:
            self._notify()
        return changed

    def mark_all_read(self) -> int:
        if self._closed:
            return 0
        changed = 0
        for idx, item in enumerate(self._items):
            if not item.is_read:
                self._items[idx] = item.model_copy(update={"is_read": True})
                changed += 1
        if changed:
            self._notify()
        return changed

    def clear(self) -> None:
        if self._closed or not self._items:
            return
        self._items = []
        self._notify()

    # ── Lifecycle / listeners ────────────────────────────────────────────────

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def close(self) -> None:
        """Drop listeners; later mutations become no-ops."""
        self._closed = True
        self._listeners.clear()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as exc:
                logger.error("store_listener_failed", error=str(exc))
