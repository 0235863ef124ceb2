"""
valorhub/features/missions/service.py

Mission catalog service.

Handles:
- Listing active missions (difficulty rank, then newest first)
- Creating missions with required-field validation
- Seeding the starter catalog (idempotent by title)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from sqlalchemy import case, insert, select

from valorhub.core.database import as_utc, missions, store_session
from valorhub.core.errors import ValidationError
from valorhub.models.mission import (
    DIFFICULTY_RANK,
    MISSION_DIFFICULTIES,
    MISSION_TYPES,
    REQUIRED_MISSION_FIELDS,
    Mission,
)

logger = logging.getLogger("valorhub")

# target and reward are stored in 32-bit INTEGER columns
MAX_MISSION_NUMBER = 2**31 - 1


STARTER_MISSIONS = [
    # Easy
    {"title": "First Blood", "description": "Get 5 kills in any game mode", "type": "kills", "target": 5, "reward": 100, "difficulty": "easy"},
    {"title": "Headshot Hunter", "description": "Get 3 headshots in any match", "type": "headshots", "target": 3, "reward": 150, "difficulty": "easy"},
    {"title": "Spike Rush Champion", "description": "Win 2 Spike Rush matches", "type": "wins", "target": 2, "reward": 120, "difficulty": "easy"},
    # Medium
    {"title": "Killing Spree", "description": "Get 25 kills across multiple matches", "type": "kills", "target": 25, "reward": 300, "difficulty": "medium"},
    {"title": "Precision Master", "description": "Get 15 headshots across multiple matches", "type": "headshots", "target": 15, "reward": 400, "difficulty": "medium"},
    {"title": "Competitive Warrior", "description": "Win 5 Competitive matches", "type": "wins", "target": 5, "reward": 500, "difficulty": "medium"},
    {"title": "Round Closer", "description": "Win 30 rounds in any game mode", "type": "rounds", "target": 30, "reward": 350, "difficulty": "medium"},
    # Hard
    {"title": "Ace Machine", "description": "Get 100 kills across multiple matches", "type": "kills", "target": 100, "reward": 1000, "difficulty": "hard"},
    {"title": "Sharpshooter Elite", "description": "Get 50 headshots across multiple matches", "type": "headshots", "target": 50, "reward": 1200, "difficulty": "hard"},
    {"title": "Vandal Specialist", "description": "Get 40 kills with the Vandal", "type": "weapon", "target": 40, "reward": 900, "difficulty": "hard"},
]


def _row_to_mission(row) -> Mission:
    return Mission(
        id=row.id,
        title=row.title,
        description=row.description,
        type=row.type,
        target=row.target,
        reward=row.reward,
        difficulty=row.difficulty,
        is_active=row.is_active,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _difficulty_order():
    return case(DIFFICULTY_RANK, value=missions.c.difficulty, else_=len(DIFFICULTY_RANK) + 1)


def list_active_missions() -> List[Mission]:
    """
    Active missions ordered easy -> medium -> hard, newest first within a difficulty.

    Difficulty sorts by rank, not alphabetically (which would put hard before medium).
    """
    with store_session("list_active_missions") as session:
        rows = session.execute(
            select(missions)
            .where(missions.c.is_active.is_(True))
            .order_by(_difficulty_order(), missions.c.created_at.desc())
        ).all()
        return [_row_to_mission(row) for row in rows]


def get_mission(mission_id: str) -> Optional[Mission]:
    with store_session("get_mission", mission_id=mission_id) as session:
        row = session.execute(select(missions).where(missions.c.id == mission_id)).first()
        return _row_to_mission(row) if row else None


def get_missions_by_ids(mission_ids: Sequence[str]) -> Dict[str, Mission]:
    if not mission_ids:
        return {}
    with store_session("get_missions_by_ids") as session:
        rows = session.execute(select(missions).where(missions.c.id.in_(list(mission_ids)))).all()
        return {row.id: _row_to_mission(row) for row in rows}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _positive_number(field: str, value: Any) -> int:
    try:
        number = float(value)
    except OverflowError:
        raise ValidationError(f"{field} is too large")
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if number != number or number <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    if number > MAX_MISSION_NUMBER:
        raise ValidationError(f"{field} is too large")
    if not number.is_integer():
        raise ValidationError(f"{field} must be a whole number")
    return int(number)


def validate_mission_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize a create-mission payload.

    All required fields must be present and non-empty; target and reward
    are coerced to positive integers.

    Raises:
        ValidationError: on any missing or malformed field
    """
    if not isinstance(payload, dict):
        raise ValidationError("All fields are required")

    missing = [field for field in REQUIRED_MISSION_FIELDS if _is_missing(payload.get(field))]
    if missing:
        raise ValidationError("All fields are required", details={"missing": missing})

    mission_type = str(payload["type"]).strip()
    if mission_type not in MISSION_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(MISSION_TYPES)}")

    difficulty = str(payload["difficulty"]).strip()
    if difficulty not in MISSION_DIFFICULTIES:
        raise ValidationError(f"difficulty must be one of: {', '.join(MISSION_DIFFICULTIES)}")

    return {
        "title": str(payload["title"]).strip(),
        "description": str(payload["description"]).strip(),
        "type": mission_type,
        "target": _positive_number("target", payload["target"]),
        "reward": _positive_number("reward", payload["reward"]),
        "difficulty": difficulty,
    }


def create_mission(payload: Dict[str, Any], now: Optional[datetime] = None, created_by: Optional[str] = None) -> Mission:
    """Validate, persist and return a new active mission."""
    fields = validate_mission_payload(payload)
    now = now or datetime.now(timezone.utc)
    mission = Mission(
        id=uuid4().hex,
        is_active=True,
        created_at=now,
        updated_at=now,
        **fields,
    )

    with store_session("create_mission", user_id=created_by) as session:
        session.execute(
            insert(missions).values(
                id=mission.id,
                title=mission.title,
                description=mission.description,
                type=mission.type,
                target=mission.target,
                reward=mission.reward,
                difficulty=mission.difficulty,
                is_active=mission.is_active,
                created_at=mission.created_at,
                updated_at=mission.updated_at,
            )
        )

    logger.info(
        "mission.created",
        extra={"user_id": created_by, "mission_id": mission.id, "event_type": "mission.created"},
    )
    return mission


def seed_missions(catalog: Optional[List[Dict[str, Any]]] = None, now: Optional[datetime] = None) -> List[Mission]:
    """
    Insert starter missions that are not already present (matched by title).

    Safe to call multiple times. Returns the missions created by this call.
    """
    catalog = STARTER_MISSIONS if catalog is None else catalog
    with store_session("seed_missions") as session:
        existing_titles = set(session.execute(select(missions.c.title)).scalars().all())

    created = []
    for entry in catalog:
        if entry["title"] in existing_titles:
            continue
        created.append(create_mission(entry, now=now))
        existing_titles.add(entry["title"])
    return created
