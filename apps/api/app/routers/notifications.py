"""
Notifications Router
====================

In-app notifications for the signed-in user and their delivery
preferences.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_auth_context, get_db
from app.errors import ValidationError
from app.schemas import (
    MarkReadRequest,
    MessageResponse,
    NotificationRead,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    NotificationsResponse,
)
from app.services import notifications as notification_service
from app.services.auth import AuthContext

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationsResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> NotificationsResponse:
    items, unread = await notification_service.list_notifications(db, auth.user_id, unread_only, limit)
    return NotificationsResponse(
        notifications=[NotificationRead.model_validate(n) for n in items],
        unread_count=unread,
    )


@router.patch("", response_model=NotificationsResponse)
async def mark_read(
    body: MarkReadRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> NotificationsResponse:
    """Mark one notification (`notification_id`) or all of them (`mark_all`) as read."""
    if not body.mark_all and body.notification_id is None:
        raise ValidationError("Provide notification_id or set mark_all")
    notification_id = None if body.mark_all else body.notification_id
    await notification_service.mark_read(db, auth.user_id, notification_id)
    return await list_notifications(False, 50, auth, db)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: UUID,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    await notification_service.delete_notification(db, auth.user_id, notification_id)
    return MessageResponse(message="Notification deleted")


@router.delete("", response_model=MessageResponse)
async def clear_notifications(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    removed = await notification_service.clear_notifications(db, auth.user_id)
    return MessageResponse(message=f"Removed {removed} notifications")


@router.get("/settings", response_model=NotificationSettingsRead)
async def get_settings(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> NotificationSettingsRead:
    prefs = await notification_service.get_notification_settings(db, auth.user_id)
    return NotificationSettingsRead.model_validate(prefs)


@router.patch("/settings", response_model=NotificationSettingsRead)
async def update_settings(
    body: NotificationSettingsUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> NotificationSettingsRead:
    """Change any subset of the preference switches; omitted fields are left alone."""
    changes = body.model_dump(exclude_none=True)
    prefs = await notification_service.update_notification_settings(db, auth.user_id, changes)
    return NotificationSettingsRead.model_validate(prefs)
