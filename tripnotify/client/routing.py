"""Where a click on a notification should navigate to."""

from __future__ import annotations

from tripnotify.schemas.notification import (
    BookingNotification,
    NotificationItem,
    SeatAssignmentNotification,
)

_BOOKING_KEYWORDS = ("booking", "حجز")


def _mentions_booking(message: str) -> bool:
    lower = message.lower()
    return any(keyword in lower for keyword in _BOOKING_KEYWORDS)


def _trip_path(trip_id: str, trip_slug: str | None = None) -> str:
    if trip_slug:
        return f"/corporate-trips/{trip_slug}"
    return f"/trips/{trip_id}"


def resolve_target(item: NotificationItem, viewer_id: str | None = None) -> str | None:
    """Return the in-app path for a notification, or None when there is nowhere to go.

    Precedence: seat assignment, bookings, explicit link, trip, actor profile.
    """
    if isinstance(item, SeatAssignmentNotification):
        return f"/corporate-trips/{item.metadata.trip_slug}#transportation"

    is_booking = isinstance(item, BookingNotification) or _mentions_booking(item.message)
    if is_booking and viewer_id:
        return f"/user/{viewer_id}?tab=bookings"

    if item.link:
        return item.link

    if item.trip_id:
        return _trip_path(item.trip_id, item.metadata.trip_slug if item.metadata else None)

    if item.actor_id:
        return f"/user/{item.actor_id}"
    return None
