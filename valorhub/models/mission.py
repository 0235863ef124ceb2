from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from valorhub.models.user import CamelModel

MissionType = Literal["kills", "headshots", "gamemode", "weapon", "rounds", "wins"]
MissionDifficulty = Literal["easy", "medium", "hard"]
MissionStatus = Literal["available", "active", "completed"]

MISSION_TYPES = ("kills", "headshots", "gamemode", "weapon", "rounds", "wins")
MISSION_DIFFICULTIES = ("easy", "medium", "hard")
MISSION_STATUSES = ("available", "active", "completed")

# Listing order for difficulty
DIFFICULTY_RANK = {"easy": 1, "medium": 2, "hard": 3}

REQUIRED_MISSION_FIELDS = ("title", "description", "type", "target", "reward", "difficulty")


class Mission(CamelModel):
    """Catalog entry. target and reward are always positive."""

    id: str
    title: str
    description: str
    type: MissionType
    target: int
    reward: int
    difficulty: MissionDifficulty
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class MissionFilters(CamelModel):
    search: str = ""
    difficulty: str = "all"
    type: str = "all"
    status: str = "all"

    @property
    def is_active(self) -> bool:
        return (
            self.search != ""
            or self.difficulty != "all"
            or self.type != "all"
            or self.status != "all"
        )


class UserMission(CamelModel):
    id: str
    user_id: str
    mission_id: str
    progress: int = 0
    is_completed: bool = False
    started_at: datetime
    accepted_at: datetime
    last_updated: datetime
    completed_at: Optional[datetime] = None
    mission: Optional[Mission] = None
