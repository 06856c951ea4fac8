"""
Notifications
=============

In-app notifications and per-user delivery preferences. Settings rows are
created lazily with defaults the first time they are read.
"""

import logging
from typing import Dict, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import dialect_insert
from app.errors import NotFoundError
from app.models import EntityType, Notification, NotificationSettings, NotificationType
from app.services.follows import get_follower_ids

logger = logging.getLogger(__name__)

SETTING_FIELDS = (
    "goals", "match_start", "match_result", "milestone", "transfer",
    "upcoming_match", "weekly_digest", "achievement", "push_enabled", "email_enabled",
)

# Which preference switches a notification type on or off
TYPE_SETTING: Dict[NotificationType, str] = {
    NotificationType.GOAL: "goals",
    NotificationType.MATCH_START: "match_start",
    NotificationType.MATCH_END: "match_result",
    NotificationType.TRANSFER: "transfer",
    NotificationType.MILESTONE: "milestone",
    NotificationType.ACHIEVEMENT: "achievement",
}


async def list_notifications(
    db: AsyncSession, user_id: UUID, unread_only: bool = False, limit: int = 50
) -> Tuple[Sequence[Notification], int]:
    """Newest notifications first, plus the user's total unread count."""
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id)
        .limit(limit)
    )
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    items = (await db.execute(stmt)).scalars().all()
    return items, await get_unread_count(db, user_id)


async def get_unread_count(db: AsyncSession, user_id: UUID) -> int:
    stmt = select(func.count()).select_from(Notification).where(
        Notification.user_id == user_id, Notification.is_read.is_(False)
    )
    return (await db.execute(stmt)).scalar_one()


async def mark_read(db: AsyncSession, user_id: UUID, notification_id: Optional[UUID] = None) -> int:
    """Mark one notification (or all when no id is given) as read."""
    stmt = update(Notification).where(Notification.user_id == user_id).values(is_read=True)
    if notification_id is not None:
        stmt = stmt.where(Notification.id == notification_id)
    result = await db.execute(stmt)
    await db.commit()
    if notification_id is not None and not result.rowcount:
        raise NotFoundError("Notification not found")
    return result.rowcount or 0


async def delete_notification(db: AsyncSession, user_id: UUID, notification_id: UUID) -> None:
    result = await db.execute(
        delete(Notification).where(Notification.user_id == user_id, Notification.id == notification_id)
    )
    await db.commit()
    if not result.rowcount:
        raise NotFoundError("Notification not found")


async def clear_notifications(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(delete(Notification).where(Notification.user_id == user_id))
    await db.commit()
    return result.rowcount or 0


async def create_notification(
    db: AsyncSession,
    user_id: UUID,
    notification_type: NotificationType,
    title: str,
    message: str,
    entity_type: Optional[EntityType] = None,
    entity_id: Optional[UUID] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        notification_type=notification_type,
        title=title,
        message=message,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    db.add(notification)
    await db.commit()
    return notification


# =============================================================================
# SETTINGS
# =============================================================================

async def get_notification_settings(db: AsyncSession, user_id: UUID) -> NotificationSettings:
    stmt = select(NotificationSettings).where(NotificationSettings.user_id == user_id)
    prefs = (await db.execute(stmt)).scalar_one_or_none()
    if prefs is not None:
        return prefs
    await db.execute(
        dialect_insert(db, NotificationSettings)
        .values(user_id=user_id)
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    await db.commit()
    return (await db.execute(stmt)).scalar_one()


async def update_notification_settings(db: AsyncSession, user_id: UUID, changes: Dict[str, bool]) -> NotificationSettings:
    prefs = await get_notification_settings(db, user_id)
    for key, value in changes.items():
        if key in SETTING_FIELDS and value is not None:
            setattr(prefs, key, bool(value))
    await db.commit()
    return prefs


async def notify_followers(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    notification_type: NotificationType,
    title: str,
    message: str,
) -> int:
    """Notify every follower of an entity whose settings allow this type."""
    setting = TYPE_SETTING[NotificationType(notification_type)]
    delivered = 0
    for user_id in await get_follower_ids(db, entity_type, entity_id):
        prefs = await get_notification_settings(db, user_id)
        if not prefs.push_enabled or not getattr(prefs, setting):
            continue
        db.add(Notification(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            entity_type=entity_type,
            entity_id=entity_id,
        ))
        delivered += 1
    await db.commit()
    if delivered:
        logger.info("Sent %d %s notifications for %s %s",
                    delivered, notification_type.value, entity_type.value, entity_id)
    return delivered
