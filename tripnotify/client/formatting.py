"""Display helpers for the notification bell."""

from __future__ import annotations

from datetime import datetime, timezone

BADGE_CAP = 9


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'} ago"


def time_ago(created_at: datetime, now: datetime | None = None) -> str:
    """Relative label for a timestamp. Naive datetimes are taken as UTC."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = max(0.0, (now - created_at).total_seconds())
    minutes = int(seconds // 60)
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return _plural(days, "day")
    if hours > 0:
        return _plural(hours, "hour")
    if minutes > 0:
        return _plural(minutes, "minute")
    return "just now"


def badge_label(unread_count: int) -> str:
    if unread_count <= 0:
        return ""
    if unread_count > BADGE_CAP:
        return f"{BADGE_CAP}+"
    return str(unread_count)


def status_label(is_streaming: bool) -> str:
    return "Live" if is_streaming else "Syncing…"
