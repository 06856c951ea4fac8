"""
Follows
=======

Following is idempotent: following an entity twice reports the existing
follow and never consumes the user's follow allowance a second time.
"""

import logging
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import dialect_insert
from app.errors import QuotaExceededError
from app.models import EntityType, Follow
from app.services.entities import get_entity
from app.services.subscriptions import can_user_follow

logger = logging.getLogger(__name__)


async def is_following(db: AsyncSession, user_id: UUID, entity_type: EntityType, entity_id: UUID) -> bool:
    stmt = select(Follow.id).where(
        Follow.user_id == user_id,
        Follow.entity_type == EntityType(entity_type),
        Follow.entity_id == entity_id,
    )
    return (await db.execute(stmt)).first() is not None


async def follow(db: AsyncSession, user_id: UUID, entity_type: EntityType, entity_id: UUID) -> bool:
    """Follow an entity; returns the resulting following state (always True)."""
    entity_type = EntityType(entity_type)
    await get_entity(db, entity_type, entity_id)

    if await is_following(db, user_id, entity_type, entity_id):
        return True

    allowance = await can_user_follow(db, user_id)
    if not allowance.allowed:
        raise QuotaExceededError(
            allowance.reason, feature="max_follows", limit=allowance.limit, used=allowance.used
        )

    insert_stmt = dialect_insert(db, Follow).values(
        user_id=user_id, entity_type=entity_type, entity_id=entity_id
    )
    await db.execute(
        insert_stmt.on_conflict_do_nothing(index_elements=["user_id", "entity_type", "entity_id"])
    )
    await db.commit()
    logger.debug("User %s followed %s %s", user_id, entity_type.value, entity_id)
    return True


async def unfollow(db: AsyncSession, user_id: UUID, entity_type: EntityType, entity_id: UUID) -> bool:
    """Remove a follow if present; returns the resulting following state (always False)."""
    await db.execute(delete(Follow).where(
        Follow.user_id == user_id,
        Follow.entity_type == EntityType(entity_type),
        Follow.entity_id == entity_id,
    ))
    await db.commit()
    return False


async def list_follows(
    db: AsyncSession, user_id: UUID, entity_type: Optional[EntityType] = None
) -> Sequence[Follow]:
    stmt = select(Follow).where(Follow.user_id == user_id).order_by(Follow.created_at.desc(), Follow.id)
    if entity_type is not None:
        stmt = stmt.where(Follow.entity_type == EntityType(entity_type))
    return (await db.execute(stmt)).scalars().all()


async def get_follower_count(db: AsyncSession, entity_type: EntityType, entity_id: UUID) -> int:
    stmt = select(func.count()).select_from(Follow).where(
        Follow.entity_type == EntityType(entity_type), Follow.entity_id == entity_id
    )
    return (await db.execute(stmt)).scalar_one()


async def get_follower_ids(db: AsyncSession, entity_type: EntityType, entity_id: UUID) -> Sequence[UUID]:
    stmt = select(Follow.user_id).where(
        Follow.entity_type == EntityType(entity_type), Follow.entity_id == entity_id
    )
    return (await db.execute(stmt)).scalars().all()
