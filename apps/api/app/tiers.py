"""
Subscription Tiers
==================

The tier/feature matrix as static data, plus the single evaluator that
answers every entitlement question against it. No per-tier branching
lives anywhere else.
"""

import enum
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional, Union

UNLIMITED = math.inf

FeatureValue = Union[bool, int, float]


class SubscriptionTier(str, enum.Enum):
    FREE = "free"
    PRO = "pro"
    ULTIMATE = "ultimate"


class Feature(str, enum.Enum):
    MAX_FOLLOWS = "max_follows"
    COMPARISONS_PER_DAY = "comparisons_per_day"
    API_CALLS_PER_DAY = "api_calls_per_day"
    ADVANCED_STATS = "advanced_stats"
    AD_FREE = "ad_free"
    EXPORT_DATA = "export_data"
    FANTASY_OPTIMIZER = "fantasy_optimizer"
    AI_ANALYTICS = "ai_analytics"
    HISTORICAL_DATA = "historical_data"
    EARLY_ACCESS = "early_access"


class UsageFeature(str, enum.Enum):
    """Features metered per user per UTC day."""
    COMPARISON = "comparison"
    API_CALL = "api_call"


USAGE_LIMIT_FEATURES: Dict[UsageFeature, Feature] = {
    UsageFeature.COMPARISON: Feature.COMPARISONS_PER_DAY,
    UsageFeature.API_CALL: Feature.API_CALLS_PER_DAY,
}


@dataclass(frozen=True)
class TierConfig:
    tier: SubscriptionTier
    name: str
    description: str
    price: Decimal
    period: str
    features: Dict[Feature, FeatureValue] = field(default_factory=dict)


SUBSCRIPTION_TIERS: Dict[SubscriptionTier, TierConfig] = {
    SubscriptionTier.FREE: TierConfig(
        tier=SubscriptionTier.FREE,
        name="Free",
        description="Perfect for casual fans",
        price=Decimal("0"),
        period="forever",
        features={
            Feature.MAX_FOLLOWS: 10,
            Feature.COMPARISONS_PER_DAY: 3,
            Feature.API_CALLS_PER_DAY: 0,
            Feature.ADVANCED_STATS: False,
            Feature.AD_FREE: False,
            Feature.EXPORT_DATA: False,
            Feature.FANTASY_OPTIMIZER: False,
            Feature.AI_ANALYTICS: False,
            Feature.HISTORICAL_DATA: False,
            Feature.EARLY_ACCESS: False,
        },
    ),
    SubscriptionTier.PRO: TierConfig(
        tier=SubscriptionTier.PRO,
        name="Pro",
        description="For serious sports enthusiasts",
        price=Decimal("4.99"),
        period="month",
        features={
            Feature.MAX_FOLLOWS: UNLIMITED,
            Feature.COMPARISONS_PER_DAY: UNLIMITED,
            Feature.API_CALLS_PER_DAY: 100,
            Feature.ADVANCED_STATS: True,
            Feature.AD_FREE: True,
            Feature.EXPORT_DATA: True,
            Feature.FANTASY_OPTIMIZER: False,
            Feature.AI_ANALYTICS: False,
            Feature.HISTORICAL_DATA: True,
            Feature.EARLY_ACCESS: True,
        },
    ),
    SubscriptionTier.ULTIMATE: TierConfig(
        tier=SubscriptionTier.ULTIMATE,
        name="Ultimate",
        description="For data analysts & power users",
        price=Decimal("9.99"),
        period="month",
        features={
            Feature.MAX_FOLLOWS: UNLIMITED,
            Feature.COMPARISONS_PER_DAY: UNLIMITED,
            Feature.API_CALLS_PER_DAY: 1000,
            Feature.ADVANCED_STATS: True,
            Feature.AD_FREE: True,
            Feature.EXPORT_DATA: True,
            Feature.FANTASY_OPTIMIZER: True,
            Feature.AI_ANALYTICS: True,
            Feature.HISTORICAL_DATA: True,
            Feature.EARLY_ACCESS: True,
        },
    ),
}


def get_tier_config(tier: SubscriptionTier) -> TierConfig:
    return SUBSCRIPTION_TIERS[SubscriptionTier(tier)]


def get_feature_value(tier: SubscriptionTier, feature: Feature) -> FeatureValue:
    return get_tier_config(tier).features[Feature(feature)]


def can_access_feature(tier: SubscriptionTier, feature: Feature) -> bool:
    """
    Boolean features pass through; numeric limits are accessible when
    positive or unbounded.
    """
    value = get_feature_value(tier, feature)
    if isinstance(value, bool):
        return value
    return value == UNLIMITED or value > 0


def is_unlimited(value: FeatureValue) -> bool:
    return not isinstance(value, bool) and value == UNLIMITED


def get_feature_limit(tier: SubscriptionTier, feature: Feature) -> Optional[int]:
    """Numeric limit for `feature`, or None when unbounded."""
    value = get_feature_value(tier, feature)
    if isinstance(value, bool):
        raise ValueError(f"{feature} is not a numeric feature")
    if is_unlimited(value):
        return None
    return int(value)


def get_usage_limit(tier: SubscriptionTier, usage_feature: UsageFeature) -> Optional[int]:
    return get_feature_limit(tier, USAGE_LIMIT_FEATURES[UsageFeature(usage_feature)])


def serialize_features(tier: SubscriptionTier) -> Dict[str, Optional[Union[bool, int]]]:
    """Feature map for JSON output; unbounded limits become null."""
    out: Dict[str, Optional[Union[bool, int]]] = {}
    for feature, value in get_tier_config(tier).features.items():
        if isinstance(value, bool):
            out[feature.value] = value
        elif is_unlimited(value):
            out[feature.value] = None
        else:
            out[feature.value] = int(value)
    return out
