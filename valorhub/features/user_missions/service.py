"""
User mission service.

- list_user_missions(user_id): accepted missions, newest first, with catalog entry
- count_active_missions(user_id)
- accept_mission(user_id, mission_id): slot- and tier-limited acceptance
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import case, func, insert, select, update

from valorhub.core.database import as_utc, store_session, user_missions, users
from valorhub.core.errors import LimitExceededError, NotFoundError, ValidationError
from valorhub.features.missions.service import get_mission, get_missions_by_ids
from valorhub.features.subscriptions.lifecycle import hours_until_refresh
from valorhub.features.subscriptions.policy import (
    get_max_active_missions,
    get_subscription_tier,
    limit_reached_message,
)
from valorhub.features.users import service as users_service
from valorhub.models.mission import UserMission

logger = logging.getLogger("valorhub")


def _row_to_user_mission(row, mission=None) -> UserMission:
    return UserMission(
        id=row.id,
        user_id=row.user_id,
        mission_id=row.mission_id,
        progress=row.progress,
        is_completed=row.is_completed,
        started_at=as_utc(row.started_at),
        accepted_at=as_utc(row.accepted_at or row.started_at),
        last_updated=as_utc(row.last_updated),
        completed_at=as_utc(row.completed_at),
        mission=mission,
    )


def list_user_missions(user_id: str) -> List[UserMission]:
    with store_session("list_user_missions", user_id=user_id) as session:
        rows = session.execute(
            select(user_missions)
            .where(user_missions.c.user_id == user_id)
            .order_by(user_missions.c.started_at.desc())
        ).all()

    catalog = get_missions_by_ids({row.mission_id for row in rows})
    return [_row_to_user_mission(row, catalog.get(row.mission_id)) for row in rows]


def count_active_missions(user_id: str) -> int:
    with store_session("count_active_missions", user_id=user_id) as session:
        return session.execute(
            select(func.count())
            .select_from(user_missions)
            .where(user_missions.c.user_id == user_id)
            .where(user_missions.c.is_completed.is_(False))
        ).scalar_one()


def _has_active_mission(user_id: str, mission_id: str) -> bool:
    with store_session("find_active_user_mission", user_id=user_id, mission_id=mission_id) as session:
        row = session.execute(
            select(user_missions.c.id)
            .where(user_missions.c.user_id == user_id)
            .where(user_missions.c.mission_id == mission_id)
            .where(user_missions.c.is_completed.is_(False))
        ).first()
        return row is not None


def accept_mission(user_id: str, mission_id: Optional[str], now: Optional[datetime] = None) -> UserMission:
    """
    Start a mission for a user.

    Checks, in order: linked Riot ID, duplicate active mission, tier limit on
    concurrently active missions, remaining slots in the current 24h window,
    mission existence. On success one slot is consumed.

    Raises:
        ValidationError: missing mission id, profile or Riot ID; mission already active
        LimitExceededError: tier limit reached or no slots left
        NotFoundError: unknown mission
    """
    if not mission_id or not str(mission_id).strip():
        raise ValidationError("Mission ID is required")
    mission_id = str(mission_id).strip()

    user = users_service.get_user(user_id)
    if user is None:
        raise ValidationError("User profile not found. Please complete setup first.")
    if not user.has_linked_riot_id:
        raise ValidationError("Riot ID verification required. Please complete setup first.")

    now = now or datetime.now(timezone.utc)
    user = users_service.ensure_subscription(user, now=now)
    user = users_service.refresh_mission_slots_if_due(user, now=now)

    tier = get_subscription_tier(user)
    max_missions = get_max_active_missions(tier)
    limits = user.mission_limits

    if _has_active_mission(user_id, mission_id):
        raise ValidationError("Mission already active")

    active_count = count_active_missions(user_id)
    if active_count >= max_missions:
        raise LimitExceededError(
            limit_reached_message(tier, max_missions),
            details={"currentTier": tier, "maxMissions": max_missions, "activeMissionsCount": active_count},
        )

    if limits.available_slots <= 0:
        hours = hours_until_refresh(limits, now)
        raise LimitExceededError(
            f"Daily mission limit reached. You can accept new missions in {hours} hours.",
            details={"availableSlots": 0, "hoursUntilRefresh": hours},
        )

    mission = get_mission(mission_id)
    if mission is None:
        raise NotFoundError("Mission not found")

    user_mission = UserMission(
        id=uuid4().hex,
        user_id=user_id,
        mission_id=mission_id,
        progress=0,
        is_completed=False,
        started_at=now,
        accepted_at=now,
        last_updated=now,
    )
    slots = func.coalesce(users.c.limits_available_slots, users.c.limits_max_active)
    with store_session("accept_mission", user_id=user_id, mission_id=mission_id) as session:
        session.execute(
            insert(user_missions).values(
                id=user_mission.id,
                user_id=user_id,
                mission_id=mission_id,
                progress=0,
                is_completed=False,
                started_at=now,
                accepted_at=now,
                last_updated=now,
            )
        )
        session.execute(
            update(users)
            .where(users.c.user_id == user_id)
            .values(
                limits_available_slots=case((slots > 0, slots - 1), else_=0),
                updated_at=now,
            )
        )

    logger.info(
        "mission.accepted",
        extra={"user_id": user_id, "mission_id": mission_id, "event_type": "mission.accepted"},
    )
    return user_mission
