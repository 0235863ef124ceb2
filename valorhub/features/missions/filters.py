"""Mission list filtering by search text, difficulty, type and per-user status."""

from typing import Iterable, List, Optional

from valorhub.core.errors import ValidationError
from valorhub.models.mission import (
    MISSION_DIFFICULTIES,
    MISSION_STATUSES,
    MISSION_TYPES,
    Mission,
    MissionFilters,
    MissionStatus,
    UserMission,
)


def build_filters(
    search: Optional[str] = None,
    difficulty: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
) -> MissionFilters:
    """Build filters from query values; unknown enum values are rejected."""
    difficulty = difficulty or "all"
    type = type or "all"
    status = status or "all"
    if difficulty != "all" and difficulty not in MISSION_DIFFICULTIES:
        raise ValidationError(f"difficulty must be one of: all, {', '.join(MISSION_DIFFICULTIES)}")
    if type != "all" and type not in MISSION_TYPES:
        raise ValidationError(f"type must be one of: all, {', '.join(MISSION_TYPES)}")
    if status != "all" and status not in MISSION_STATUSES:
        raise ValidationError(f"status must be one of: all, {', '.join(MISSION_STATUSES)}")
    return MissionFilters(search=(search or "").strip(), difficulty=difficulty, type=type, status=status)


def mission_status(mission: Mission, user_missions: Iterable[UserMission]) -> MissionStatus:
    for user_mission in user_missions:
        if user_mission.mission_id == mission.id:
            return "completed" if user_mission.is_completed else "active"
    return "available"


def filter_missions(
    missions: Iterable[Mission],
    user_missions: Iterable[UserMission],
    filters: MissionFilters,
) -> List[Mission]:
    user_missions = list(user_missions)
    term = filters.search.lower()
    result = []
    for mission in missions:
        if term and term not in mission.title.lower() and term not in mission.description.lower():
            continue
        if filters.difficulty != "all" and mission.difficulty != filters.difficulty:
            continue
        if filters.type != "all" and mission.type != filters.type:
            continue
        if filters.status != "all" and mission_status(mission, user_missions) != filters.status:
            continue
        result.append(mission)
    return result
