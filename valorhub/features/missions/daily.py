"""
Deterministic daily mission selection.

A user sees the same subset of the catalog for a whole UTC day: the seed is
derived from "<user_id>-<YYYY-MM-DD>", hashed to a 32-bit integer and fed to
a linear congruential generator driving a Fisher-Yates shuffle.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from valorhub.features.missions.service import list_active_missions
from valorhub.features.subscriptions.policy import get_max_active_missions, get_subscription_tier
from valorhub.features.users import service as users_service
from valorhub.models.mission import Mission
from valorhub.models.user import DailyMissions

logger = logging.getLogger("valorhub")

DAILY_REFRESH_INTERVAL = timedelta(hours=24)

_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223
_LCG_MODULUS = 2 ** 32


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def seed_for(user_id: str, day: date) -> int:
    """Non-negative 32-bit seed from a djb2-style string hash of user and day."""
    h = 0
    for char in f"{user_id}-{day.isoformat()}":
        h = _to_int32((h << 5) - h + ord(char))
    return abs(h)


def _lcg(seed: int):
    state = seed
    while True:
        state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) % _LCG_MODULUS
        yield state / _LCG_MODULUS


def select_daily_mission_ids(missions: Sequence[Mission], user_id: str, max_missions: int, day: date) -> List[str]:
    """Pick up to max_missions mission ids for user_id on day."""
    if len(missions) <= max_missions:
        return [mission.id for mission in missions]

    shuffled = list(missions)
    rng = _lcg(seed_for(user_id, day))
    index = len(shuffled)
    while index:
        pick = int(next(rng) * index)
        index -= 1
        shuffled[index], shuffled[pick] = shuffled[pick], shuffled[index]

    return [mission.id for mission in shuffled[:max_missions]]


def should_refresh_daily(daily: Optional[DailyMissions], now: datetime) -> bool:
    if daily is None or daily.last_refresh is None:
        return True
    return now - daily.last_refresh >= DAILY_REFRESH_INTERVAL


def build_daily_selection(missions: Sequence[Mission], user_id: str, max_missions: int, now: datetime) -> DailyMissions:
    return DailyMissions(
        selected_mission_ids=select_daily_mission_ids(missions, user_id, max_missions, now.date()),
        last_refresh=now,
        next_refresh=now + DAILY_REFRESH_INTERVAL,
    )


def get_daily_missions(user_id: str, now: Optional[datetime] = None) -> dict:
    """
    Today's mission selection for a user, sized by their tier.

    The stored selection is reused until its window expires; an empty
    selection is always regenerated.

    Raises:
        NotFoundError: no profile for user_id
    """
    now = now or users_service.utc_now()
    user = users_service.require_user(user_id)
    user = users_service.ensure_subscription(user, now=now)

    tier = get_subscription_tier(user)
    max_missions = get_max_active_missions(tier)
    active = list_active_missions()

    daily = user.daily_missions
    if should_refresh_daily(daily, now) or not daily.selected_mission_ids:
        daily = build_daily_selection(active, user_id, max_missions, now)
        users_service.save_daily_missions(user_id, daily)
        logger.info(
            "daily_missions.refreshed",
            extra={"user_id": user_id, "event_type": "daily_missions.refreshed"},
        )

    selected = set(daily.selected_mission_ids)
    return {
        "missions": [mission.to_json() for mission in active if mission.id in selected],
        "tier": tier,
        "maxMissions": max_missions,
        "nextRefresh": daily.next_refresh.isoformat(),
        "isLimited": True,
    }
