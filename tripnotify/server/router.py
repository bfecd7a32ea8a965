"""Notifications API router: list, read, read-all, unread count, stream (SSE), create."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from tripnotify.core.config import settings
from tripnotify.schemas.notification import dump_notification
from tripnotify.server import service
from tripnotify.server.auth import CurrentUser, get_current_user
from tripnotify.server.repository import InMemoryNotificationRepository, repository
from tripnotify.server.schemas import MarkReadResponse, NotificationCreate, UnreadCountResponse
from tripnotify.server.sse import SSEManager, event_stream, sse_manager

logger = structlog.get_logger()

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_repository() -> InMemoryNotificationRepository:
    return repository


def get_sse_manager() -> SSEManager:
    return sse_manager


# ── Fixed-path routes (before /{id}) ─────────────────────────────────────────


@router.get("")
async def list_notifications(
    limit: int = Query(30, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    repo: InMemoryNotificationRepository = Depends(get_repository),
) -> list[dict[str, Any]]:
    """List the caller's notifications, newest first."""
    return [dump_notification(n) for n in repo.list_for(current_user.user_id, limit)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    body: NotificationCreate,
    current_user: CurrentUser = Depends(get_current_user),
    repo: InMemoryNotificationRepository = Depends(get_repository),
    manager: SSEManager = Depends(get_sse_manager),
) -> dict[str, Any]:
    """Dispatch a notification on behalf of the caller."""
    if body.actor_id != current_user.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="actorId must match the caller")
    try:
        notification = await service.create_notification(repo, manager, body)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": "invalid_notification", "message": "Notification is missing required fields",
                    "detail": e.errors(include_url=False, include_input=False, include_context=False)},
        ) from e
    if notification is None:
        return {"skipped": True}
    return dump_notification(notification)


@router.post("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    repo: InMemoryNotificationRepository = Depends(get_repository),
):
    """Mark all notifications as read."""
    count = repo.mark_all_read(current_user.user_id)
    return MarkReadResponse(marked_read=count)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    repo: InMemoryNotificationRepository = Depends(get_repository),
):
    """Get unread notification count."""
    return UnreadCountResponse(count=repo.unread_count(current_user.user_id))


@router.get("/stream")
async def notification_stream(
    current_user: CurrentUser = Depends(get_current_user),
    manager: SSEManager = Depends(get_sse_manager),
):
    """SSE stream for real-time notifications."""
    return StreamingResponse(
        event_stream(manager, current_user.user_id, settings.SSE_HEARTBEAT_SECONDS),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ── Parameterized routes (after fixed paths) ─────────────────────────────────


@router.post("/{notification_id}/read", response_model=MarkReadResponse, response_model_exclude_none=True)
async def mark_read(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    repo: InMemoryNotificationRepository = Depends(get_repository),
):
    """Mark a single notification as read. Unknown ids are acknowledged too."""
    repo.mark_read(current_user.user_id, notification_id)
    return MarkReadResponse()
