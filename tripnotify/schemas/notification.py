"""Notification schemas.

A notification is a tagged variant discriminated by ``type``. Every variant may
carry a ``trip_id`` and free-form ``metadata``; the service sends both on
``system`` events too (chat replies, booking updates). Seat assignments require
the trip slug they link to.

The wire format is camelCase (``recipientId``, ``isRead``, ``createdAt``);
models accept either spelling and dump by alias.
"""

import enum
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class NotificationType(str, enum.Enum):
    LOVE = "love"
    SAVE = "save"
    COMMENT = "comment"
    FOLLOW = "follow"
    TAG = "tag"
    MESSAGE = "message"
    SYSTEM = "system"
    BOOKING = "booking"
    BOOKING_STATUS = "booking_status"
    SEAT_ASSIGNMENT = "seat_assignment"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ── Metadata ─────────────────────────────────────────────────────────────────


class NotificationMetadata(_WireModel):
    """Free-form hints the service attaches (bookings, chat replies, moderation)."""

    action: str | None = None
    trip_slug: str | None = None
    booking_id: str | None = None
    status: str | None = None
    conversation_id: str | None = None


class SeatAssignmentMetadata(_WireModel):
    trip_slug: str
    seat_number: str | None = None
    vehicle: str | None = None


# ── Variants ─────────────────────────────────────────────────────────────────


class _NotificationBase(_WireModel):
    id: str
    recipient_id: str
    actor_id: str
    actor_name: str | None = None
    actor_image: str | None = None
    message: str
    link: str | None = None
    trip_id: str | None = None
    metadata: NotificationMetadata | None = None
    is_read: bool = False
    created_at: datetime


class LoveNotification(_NotificationBase):
    type: Literal["love"]


class SaveNotification(_NotificationBase):
    type: Literal["save"]


class CommentNotification(_NotificationBase):
    type: Literal["comment"]
    comment_id: str | None = None


class TagNotification(_NotificationBase):
    type: Literal["tag"]


class FollowNotification(_NotificationBase):
    type: Literal["follow"]


class MessageNotification(_NotificationBase):
    type: Literal["message"]


class SystemNotification(_NotificationBase):
    type: Literal["system"]


class BookingNotification(_NotificationBase):
    type: Literal["booking", "booking_status"]
    metadata: NotificationMetadata = Field(default_factory=NotificationMetadata)


class SeatAssignmentNotification(_NotificationBase):
    type: Literal["seat_assignment"]
    metadata: SeatAssignmentMetadata


NotificationItem = Annotated[
    Union[
        LoveNotification,
        SaveNotification,
        CommentNotification,
        TagNotification,
        FollowNotification,
        MessageNotification,
        SystemNotification,
        BookingNotification,
        SeatAssignmentNotification,
    ],
    Field(discriminator="type"),
]

_adapter: TypeAdapter[NotificationItem] = TypeAdapter(NotificationItem)


def _normalize(data: dict[str, Any]) -> dict[str, Any]:
    """Promote legacy seat assignments (``metadata.action``) to their own variant.

    Only when the metadata names the trip; otherwise the payload keeps its own
    type and routes like any other notification.
    """
    metadata = data.get("metadata")
    if not isinstance(metadata, dict) or metadata.get("action") != NotificationType.SEAT_ASSIGNMENT.value:
        return data
    if not (metadata.get("tripSlug") or metadata.get("trip_slug")):
        return data
    return {**data, "type": NotificationType.SEAT_ASSIGNMENT.value}


def parse_notification(data: Any) -> NotificationItem:
    """Validate a decoded JSON object into a notification variant.

    Raises pydantic.ValidationError on unknown types or missing fields.
    """
    if isinstance(data, dict):
        data = _normalize(data)
    return _adapter.validate_python(data)


def dump_notification(item: NotificationItem) -> dict[str, Any]:
    """camelCase, JSON-ready dict with empty optionals omitted."""
    return item.model_dump(mode="json", by_alias=True, exclude_none=True)
