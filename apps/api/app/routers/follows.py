"""
Follows Router
==============

Follow and unfollow players, teams and competitions. Free accounts may
follow a limited number of entities; paid tiers are unlimited.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_auth_context, get_db
from app.models import EntityType
from app.schemas import FollowRead, FollowRequest, FollowsResponse, FollowStateResponse
from app.services import follows as follow_service
from app.services.auth import AuthContext
from app.services.subscriptions import can_user_follow

router = APIRouter(prefix="/follows", tags=["Follows"])


@router.get("", response_model=FollowsResponse)
async def list_follows(
    entity_type: Optional[EntityType] = Query(None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> FollowsResponse:
    follows = await follow_service.list_follows(db, auth.user_id, entity_type)
    allowance = await can_user_follow(db, auth.user_id)
    return FollowsResponse(
        follows=[FollowRead.model_validate(f) for f in follows],
        total=allowance.used,
        limit=allowance.limit,
    )


@router.post("", response_model=FollowStateResponse)
async def toggle_follow(
    body: FollowRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> FollowStateResponse:
    """
    Follow or unfollow an entity.

    Both actions are idempotent. Following beyond the tier's limit returns
    403 with the limit and current count.
    """
    if body.action == "follow":
        following = await follow_service.follow(db, auth.user_id, body.entity_type, body.entity_id)
    else:
        following = await follow_service.unfollow(db, auth.user_id, body.entity_type, body.entity_id)

    return FollowStateResponse(
        following=following,
        follower_count=await follow_service.get_follower_count(db, body.entity_type, body.entity_id),
    )


@router.get("/check", response_model=FollowStateResponse)
async def check_follow(
    entity_type: EntityType = Query(...),
    entity_id: UUID = Query(...),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> FollowStateResponse:
    return FollowStateResponse(
        following=await follow_service.is_following(db, auth.user_id, entity_type, entity_id),
        follower_count=await follow_service.get_follower_count(db, entity_type, entity_id),
    )
