"""
Subscription status service.

- get_subscription_status(user_id): tier, entitlement and slot usage for the dashboard
- update_subscription(user_id, tier): tier change with a fresh slot window
"""

from datetime import datetime
from typing import Any, Dict, Optional

from valorhub.core.errors import ValidationError
from valorhub.features.subscriptions.lifecycle import hours_until_refresh
from valorhub.features.subscriptions.policy import (
    get_max_active_missions,
    get_subscription_tier,
    get_tier_info,
    is_valid_tier,
)
from valorhub.features.user_missions.service import count_active_missions
from valorhub.features.users import service as users_service


def get_subscription_status(user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Current subscription view for a user.

    Initializes missing subscription records and applies a due slot refresh
    before reporting.

    Raises:
        NotFoundError: no profile for user_id
    """
    now = now or users_service.utc_now()
    user = users_service.require_user(user_id)
    user = users_service.ensure_subscription(user, now=now)
    user = users_service.refresh_mission_slots_if_due(user, now=now)

    tier = get_subscription_tier(user)
    max_missions = get_max_active_missions(tier)
    active_count = count_active_missions(user_id)
    limits = user.mission_limits

    return {
        "tier": tier,
        "tierInfo": get_tier_info(tier).to_json(),
        "maxActiveMissions": max_missions,
        "activeMissionsCount": active_count,
        "availableSlots": limits.available_slots,
        "canAcceptMissions": limits.available_slots > 0 and active_count < max_missions,
        "nextRefresh": limits.next_refresh.isoformat() if limits.next_refresh else None,
        "hoursUntilRefresh": hours_until_refresh(limits, now),
        "subscription": user.subscription.to_json() if user.subscription else None,
    }


def update_subscription(user_id: str, tier: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Raises:
        ValidationError: unknown tier
        NotFoundError: no profile for user_id
    """
    if not isinstance(tier, str) or not is_valid_tier(tier):
        raise ValidationError("Invalid subscription tier")

    user = users_service.change_tier(user_id, tier, now=now)
    info = get_tier_info(tier)
    return {
        "success": True,
        "tier": tier,
        "maxActiveMissions": info.max_active_missions,
        "subscription": user.subscription.to_json(),
        "missionLimits": user.mission_limits.to_json(),
        "message": f"Subscription updated to {info.name}",
    }
