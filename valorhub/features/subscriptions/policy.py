"""
valorhub/features/subscriptions/policy.py

Subscription tier policy.

Maps a tier to its mission-capacity entitlement. The table is built once at
import and never mutated; lookups are total (unknown tiers resolve to free).
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

DEFAULT_TIER = "free"


class TierInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    max_active_missions: int
    price: int
    features: Tuple[str, ...]

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "maxActiveMissions": self.max_active_missions,
            "price": self.price,
            "features": list(self.features),
        }


SUBSCRIPTION_TIERS: Mapping[str, TierInfo] = MappingProxyType({
    "free": TierInfo(
        name="Free",
        max_active_missions=3,
        price=0,
        features=("Up to 3 active missions", "Basic mission tracking", "Daily mission refresh"),
    ),
    "standard": TierInfo(
        name="Standard",
        max_active_missions=5,
        price=3,
        features=("Up to 5 active missions", "Advanced mission tracking", "Daily mission refresh", "Priority support"),
    ),
    "premium": TierInfo(
        name="Premium",
        max_active_missions=10,
        price=10,
        features=(
            "Up to 10 active missions",
            "Advanced mission tracking",
            "Daily mission refresh",
            "Priority support",
            "Exclusive missions",
        ),
    ),
})


def is_valid_tier(tier: Optional[str]) -> bool:
    return tier in SUBSCRIPTION_TIERS


def normalize_tier(tier: Optional[str]) -> str:
    """Return tier if known, else the default tier."""
    return tier if is_valid_tier(tier) else DEFAULT_TIER


def get_tier_info(tier: Optional[str]) -> TierInfo:
    return SUBSCRIPTION_TIERS[normalize_tier(tier)]


def get_max_active_missions(tier: Optional[str]) -> int:
    """Maximum concurrently active missions for a tier (free for unknown tiers)."""
    return get_tier_info(tier).max_active_missions


def get_subscription_tier(user: Any) -> str:
    """
    Resolve a user's tier.

    Accepts a User model or a plain mapping with a `subscription` entry;
    users without a subscription record are on the free tier.
    """
    if user is None:
        return DEFAULT_TIER
    if isinstance(user, Mapping):
        subscription = user.get("subscription") or {}
        tier = subscription.get("tier") if isinstance(subscription, Mapping) else None
    else:
        subscription = getattr(user, "subscription", None)
        tier = getattr(subscription, "tier", None)
    return normalize_tier(tier)


def limit_reached_message(tier: str, max_missions: int) -> str:
    if tier == DEFAULT_TIER:
        standard = SUBSCRIPTION_TIERS["standard"]
        premium = SUBSCRIPTION_TIERS["premium"]
        return (
            f"Mission limit reached. Upgrade to {standard.name} (${standard.price}/month) for "
            f"{standard.max_active_missions} missions or {premium.name} (${premium.price}/month) for "
            f"{premium.max_active_missions} missions."
        )
    return f"Mission limit reached. Your {tier} plan allows up to {max_missions} active missions."
