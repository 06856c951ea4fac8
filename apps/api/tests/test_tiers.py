"""
Tests for the Subscription Tier Table
=====================================
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from app.database import utcnow
from app.models import SubscriptionStatus
from app.services.subscriptions import UsageCheck, effective_tier
from app.tiers import (
    Feature,
    SubscriptionTier,
    UsageFeature,
    can_access_feature,
    get_feature_limit,
    get_usage_limit,
    serialize_features,
)


def test_free_tier_limits():
    assert get_feature_limit(SubscriptionTier.FREE, Feature.MAX_FOLLOWS) == 10
    assert get_usage_limit(SubscriptionTier.FREE, UsageFeature.COMPARISON) == 3
    assert not can_access_feature(SubscriptionTier.FREE, Feature.ADVANCED_STATS)
    assert not can_access_feature(SubscriptionTier.FREE, Feature.EXPORT_DATA)


def test_zero_limit_means_no_access():
    assert get_usage_limit(SubscriptionTier.FREE, UsageFeature.API_CALL) == 0
    assert not can_access_feature(SubscriptionTier.FREE, Feature.API_CALLS_PER_DAY)


def test_paid_tiers_are_unlimited_where_expected():
    for tier in (SubscriptionTier.PRO, SubscriptionTier.ULTIMATE):
        assert get_feature_limit(tier, Feature.MAX_FOLLOWS) is None
        assert get_usage_limit(tier, UsageFeature.COMPARISON) is None
        assert can_access_feature(tier, Feature.MAX_FOLLOWS)


def test_api_call_allowance_by_tier():
    assert get_usage_limit(SubscriptionTier.PRO, UsageFeature.API_CALL) == 100
    assert get_usage_limit(SubscriptionTier.ULTIMATE, UsageFeature.API_CALL) == 1000


def test_ultimate_only_features():
    assert not can_access_feature(SubscriptionTier.PRO, Feature.AI_ANALYTICS)
    assert can_access_feature(SubscriptionTier.ULTIMATE, Feature.AI_ANALYTICS)
    assert can_access_feature(SubscriptionTier.ULTIMATE, Feature.FANTASY_OPTIMIZER)


def test_boolean_feature_has_no_numeric_limit():
    with pytest.raises(ValueError):
        get_feature_limit(SubscriptionTier.PRO, Feature.AD_FREE)


def test_serialized_unlimited_is_null():
    features = serialize_features(SubscriptionTier.PRO)
    assert features["max_follows"] is None
    assert features["api_calls_per_day"] == 100
    assert features["advanced_stats"] is True
    assert set(features) == {f.value for f in Feature}


def test_usage_check_remaining():
    assert UsageCheck(allowed=True, used=2, limit=3).remaining == 1
    assert UsageCheck(allowed=False, used=5, limit=3).remaining == 0
    unlimited = UsageCheck(allowed=True, used=0, limit=None)
    assert unlimited.unlimited and unlimited.remaining is None


def _subscription(tier, status=SubscriptionStatus.ACTIVE, end_date=None):
    return SimpleNamespace(tier=tier, status=status, end_date=end_date)


def test_effective_tier_active_paid():
    sub = _subscription(SubscriptionTier.PRO, end_date=utcnow() + timedelta(days=10))
    assert effective_tier(sub) == SubscriptionTier.PRO


def test_effective_tier_cancelled_keeps_access_until_end():
    sub = _subscription(SubscriptionTier.ULTIMATE, SubscriptionStatus.CANCELLED, utcnow() + timedelta(days=1))
    assert effective_tier(sub) == SubscriptionTier.ULTIMATE


def test_effective_tier_expired_or_past_due_falls_back_to_free():
    expired = _subscription(SubscriptionTier.PRO, end_date=utcnow() - timedelta(seconds=1))
    past_due = _subscription(SubscriptionTier.PRO, SubscriptionStatus.PAST_DUE, utcnow() + timedelta(days=5))
    assert effective_tier(expired) == SubscriptionTier.FREE
    assert effective_tier(past_due) == SubscriptionTier.FREE
    assert effective_tier(None) == SubscriptionTier.FREE
