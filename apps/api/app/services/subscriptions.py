"""
Subscriptions & Entitlements
============================

One subscription row per user, created on first read. Every entitlement
question is answered from the tier table in `app.tiers`; this module only
knows how to find the user's effective tier and how to count usage.

Daily usage is keyed by the UTC calendar date and incremented with a
single INSERT ... ON CONFLICT DO UPDATE, so concurrent requests never lose
an increment.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import dialect_insert, to_utc, utcnow
from app.errors import QuotaExceededError, ValidationError
from app.models import Follow, Subscription, SubscriptionStatus, UsageLimit
from app.tiers import (
    Feature,
    SubscriptionTier,
    UsageFeature,
    can_access_feature,
    get_feature_limit,
    get_usage_limit,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowAllowance:
    allowed: bool
    used: int
    limit: Optional[int]
    reason: Optional[str] = None


@dataclass(frozen=True)
class UsageCheck:
    allowed: bool
    used: int
    limit: Optional[int]

    @property
    def unlimited(self) -> bool:
        return self.limit is None

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(0, self.limit - self.used)


def usage_day() -> date:
    return utcnow().date()


# =============================================================================
# SUBSCRIPTION LIFECYCLE
# =============================================================================

async def get_user_subscription(db: AsyncSession, user_id: UUID) -> Subscription:
    """Return the user's subscription, creating a free one if none exists."""
    stmt = select(Subscription).where(Subscription.user_id == user_id)
    subscription = (await db.execute(stmt)).scalar_one_or_none()
    if subscription is not None:
        return subscription

    insert_stmt = dialect_insert(db, Subscription).values(
        user_id=user_id,
        tier=SubscriptionTier.FREE,
        status=SubscriptionStatus.ACTIVE,
        start_date=utcnow(),
        auto_renew=True,
    )
    await db.execute(insert_stmt.on_conflict_do_nothing(index_elements=["user_id"]))
    await db.commit()
    return (await db.execute(stmt)).scalar_one()


def effective_tier(subscription: Optional[Subscription]) -> SubscriptionTier:
    """
    Tier the user is entitled to right now.

    Active and cancelled subscriptions keep their tier until end_date;
    anything past due or expired falls back to free.
    """
    if subscription is None:
        return SubscriptionTier.FREE
    if subscription.status == SubscriptionStatus.PAST_DUE:
        return SubscriptionTier.FREE
    end_date = to_utc(subscription.end_date)
    if end_date is not None and end_date <= utcnow():
        return SubscriptionTier.FREE
    return SubscriptionTier(subscription.tier)


async def get_user_tier(db: AsyncSession, user_id: UUID) -> SubscriptionTier:
    return effective_tier(await get_user_subscription(db, user_id))


async def change_tier(db: AsyncSession, user_id: UUID, tier: SubscriptionTier) -> Subscription:
    """Replace the subscription with a fresh period on `tier`."""
    subscription = await get_user_subscription(db, user_id)
    now = utcnow()
    tier = SubscriptionTier(tier)
    subscription.tier = tier
    subscription.status = SubscriptionStatus.ACTIVE
    subscription.start_date = now
    subscription.end_date = (
        None if tier == SubscriptionTier.FREE else now + timedelta(days=settings.subscription_period_days)
    )
    subscription.auto_renew = True
    subscription.cancelled_at = None
    await db.commit()
    logger.info("User %s moved to %s tier", user_id, tier.value)
    return subscription


async def upgrade_subscription(db: AsyncSession, user_id: UUID, tier: SubscriptionTier) -> Subscription:
    if SubscriptionTier(tier) == SubscriptionTier.FREE:
        raise ValidationError("Choose a paid tier to upgrade to", field="tier")
    return await change_tier(db, user_id, tier)


async def downgrade_subscription(db: AsyncSession, user_id: UUID) -> Subscription:
    return await change_tier(db, user_id, SubscriptionTier.FREE)


async def cancel_subscription(db: AsyncSession, user_id: UUID) -> Subscription:
    """Stop renewal; access continues until end_date."""
    subscription = await get_user_subscription(db, user_id)
    if subscription.tier == SubscriptionTier.FREE:
        raise ValidationError("Free subscriptions cannot be cancelled")
    subscription.status = SubscriptionStatus.CANCELLED
    subscription.auto_renew = False
    subscription.cancelled_at = utcnow()
    await db.commit()
    logger.info("User %s cancelled %s subscription", user_id, subscription.tier.value)
    return subscription


async def user_can_access(db: AsyncSession, user_id: UUID, feature: Feature) -> bool:
    return can_access_feature(await get_user_tier(db, user_id), feature)


# =============================================================================
# FOLLOW LIMITS
# =============================================================================

async def get_follow_count(db: AsyncSession, user_id: UUID) -> int:
    stmt = select(func.count()).select_from(Follow).where(Follow.user_id == user_id)
    return (await db.execute(stmt)).scalar_one()


async def can_user_follow(db: AsyncSession, user_id: UUID) -> FollowAllowance:
    """
    Whether the user has a free follow slot.

    The follow count is read even for unbounded tiers because `used` is
    shown in follow listings and on the subscription page.
    """
    tier = await get_user_tier(db, user_id)
    limit = get_feature_limit(tier, Feature.MAX_FOLLOWS)
    used = await get_follow_count(db, user_id)
    if limit is None or used < limit:
        return FollowAllowance(allowed=True, used=used, limit=limit)
    return FollowAllowance(
        allowed=False,
        used=used,
        limit=limit,
        reason=f"Free tier is limited to {limit} follows. Upgrade to Pro for unlimited follows.",
    )


async def get_remaining_follows(db: AsyncSession, user_id: UUID) -> Optional[int]:
    """None when unlimited."""
    allowance = await can_user_follow(db, user_id)
    if allowance.limit is None:
        return None
    return max(0, allowance.limit - allowance.used)


# =============================================================================
# DAILY USAGE
# =============================================================================

async def get_daily_usage(db: AsyncSession, user_id: UUID, feature_type: UsageFeature) -> int:
    stmt = select(UsageLimit.count).where(
        UsageLimit.user_id == user_id,
        UsageLimit.feature_type == UsageFeature(feature_type),
        UsageLimit.usage_date == usage_day(),
    )
    return (await db.execute(stmt)).scalar_one_or_none() or 0


async def check_daily_usage(db: AsyncSession, user_id: UUID, feature_type: UsageFeature) -> UsageCheck:
    tier = await get_user_tier(db, user_id)
    limit = get_usage_limit(tier, feature_type)
    if limit is None:
        return UsageCheck(allowed=True, used=0, limit=None)
    used = await get_daily_usage(db, user_id, feature_type)
    return UsageCheck(allowed=used < limit, used=used, limit=limit)


async def increment_daily_usage(db: AsyncSession, user_id: UUID, feature_type: UsageFeature) -> int:
    """Atomically add one to today's counter and return the new value."""
    insert_stmt = dialect_insert(db, UsageLimit).values(
        user_id=user_id,
        feature_type=UsageFeature(feature_type),
        usage_date=usage_day(),
        count=1,
    )
    upsert = insert_stmt.on_conflict_do_update(
        index_elements=["user_id", "feature_type", "usage_date"],
        set_=dict(count=UsageLimit.count + 1),
    ).returning(UsageLimit.count)
    count = (await db.execute(upsert)).scalar_one()
    await db.commit()
    return count


async def consume_daily_usage(db: AsyncSession, user_id: UUID, feature_type: UsageFeature) -> UsageCheck:
    """Check the quota and record one use, raising QuotaExceededError when exhausted."""
    feature_type = UsageFeature(feature_type)
    check = await check_daily_usage(db, user_id, feature_type)
    if not check.allowed:
        raise QuotaExceededError(
            f"Daily {feature_type.value.replace('_', ' ')} limit reached. Upgrade for more.",
            feature=feature_type.value,
            limit=check.limit,
            used=check.used,
        )
    used = await increment_daily_usage(db, user_id, feature_type)
    return UsageCheck(allowed=True, used=used, limit=check.limit)
