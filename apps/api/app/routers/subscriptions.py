"""
Subscriptions Router
====================

Tier catalogue, the caller's subscription and entitlements, tier changes
and daily usage counters. Payment processing is handled elsewhere; tier
changes here take effect immediately.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_auth_context, get_db
from app.schemas import (
    SubscriptionRead,
    SubscriptionResponse,
    TierRead,
    UpgradeRequest,
    UsageRead,
)
from app.services import subscriptions as subscription_service
from app.services.auth import AuthContext
from app.services.subscriptions import UsageCheck
from app.tiers import SUBSCRIPTION_TIERS, UsageFeature, serialize_features

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def usage_read(feature: UsageFeature, check: UsageCheck) -> UsageRead:
    return UsageRead(
        feature=feature,
        allowed=check.allowed,
        used=check.used,
        limit=check.limit,
        unlimited=check.unlimited,
        remaining=check.remaining,
    )


async def build_subscription_response(db: AsyncSession, auth: AuthContext) -> SubscriptionResponse:
    subscription = await subscription_service.get_user_subscription(db, auth.user_id)
    tier = subscription_service.effective_tier(subscription)
    follows_used = await subscription_service.get_follow_count(db, auth.user_id)
    follows_remaining = await subscription_service.get_remaining_follows(db, auth.user_id)

    usage = []
    for feature in UsageFeature:
        usage.append(usage_read(feature, await subscription_service.check_daily_usage(db, auth.user_id, feature)))

    return SubscriptionResponse(
        subscription=SubscriptionRead.model_validate(subscription),
        effective_tier=tier,
        features=serialize_features(tier),
        follows_used=follows_used,
        follows_remaining=follows_remaining,
        usage=usage,
    )


@router.get("/tiers", response_model=List[TierRead])
async def list_tiers() -> List[TierRead]:
    """Every tier with its price and features. Unlimited values are null."""
    return [
        TierRead(
            tier=config.tier,
            name=config.name,
            description=config.description,
            price=config.price,
            period=config.period,
            features=serialize_features(config.tier),
        )
        for config in SUBSCRIPTION_TIERS.values()
    ]


@router.get("/me", response_model=SubscriptionResponse)
async def get_my_subscription(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> SubscriptionResponse:
    return await build_subscription_response(db, auth)


@router.post("/upgrade", response_model=SubscriptionResponse)
async def upgrade(
    body: UpgradeRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> SubscriptionResponse:
    await subscription_service.upgrade_subscription(db, auth.user_id, body.tier)
    return await build_subscription_response(db, auth)


@router.post("/downgrade", response_model=SubscriptionResponse)
async def downgrade(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> SubscriptionResponse:
    """Return to the free tier immediately. Existing follows are kept."""
    await subscription_service.downgrade_subscription(db, auth.user_id)
    return await build_subscription_response(db, auth)


@router.post("/cancel", response_model=SubscriptionResponse)
async def cancel(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> SubscriptionResponse:
    """Stop renewal; paid features remain until the period ends."""
    await subscription_service.cancel_subscription(db, auth.user_id)
    return await build_subscription_response(db, auth)


@router.get("/usage/{feature}", response_model=UsageRead)
async def get_usage(
    feature: UsageFeature,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> UsageRead:
    """Today's (UTC) usage of a metered feature."""
    check = await subscription_service.check_daily_usage(db, auth.user_id, feature)
    return usage_read(feature, check)
