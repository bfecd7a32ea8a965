"""Request/response schemas for the notification service."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from tripnotify.schemas.notification import NotificationType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NotificationCreate(_CamelModel):
    recipient_id: str | None = None
    actor_id: str
    actor_name: str | None = None
    actor_image: str | None = None
    type: NotificationType
    message: str
    trip_id: str | None = None
    comment_id: str | None = None
    link: str | None = None
    metadata: dict[str, Any] | None = None
    is_read: bool = False


class UnreadCountResponse(BaseModel):
    count: int


class MarkReadResponse(_CamelModel):
    success: bool = True
    marked_read: int | None = None
