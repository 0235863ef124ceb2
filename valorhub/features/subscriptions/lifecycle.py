"""
Mission limit lifecycle.

Pure transitions over a user's mission slot record:

    uninitialized --initial_mission_limits--> active
    active --refresh_limits (>= 24h since last refresh)--> active
    active --consume_slot--> active

Every refresh restarts the 24h window from the moment it runs; missed
windows are not caught up.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from valorhub.features.subscriptions.policy import get_max_active_missions
from valorhub.models.user import MissionLimits

REFRESH_INTERVAL = timedelta(hours=24)


def initial_mission_limits(tier: str, now: datetime) -> MissionLimits:
    max_missions = get_max_active_missions(tier)
    return MissionLimits(
        max_active_missions=max_missions,
        available_slots=max_missions,
        last_refresh=now,
        next_refresh=now + REFRESH_INTERVAL,
    )


def should_refresh(limits: Optional[MissionLimits], now: datetime) -> bool:
    """True when there is no record yet or a full window has elapsed."""
    if limits is None or limits.last_refresh is None:
        return True
    return now - limits.last_refresh >= REFRESH_INTERVAL


def refresh_limits(max_missions: int, now: datetime) -> MissionLimits:
    return MissionLimits(
        max_active_missions=max_missions,
        available_slots=max_missions,
        last_refresh=now,
        next_refresh=now + REFRESH_INTERVAL,
    )


def consume_slot(limits: MissionLimits) -> MissionLimits:
    return limits.model_copy(update={"available_slots": max(0, limits.available_slots - 1)})


def hours_until_refresh(limits: Optional[MissionLimits], now: datetime) -> int:
    if limits is None or limits.next_refresh is None:
        return 0
    remaining = (limits.next_refresh - now).total_seconds() / 3600
    return max(0, math.ceil(remaining))
