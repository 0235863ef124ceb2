from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SubscriptionTierKey = Literal["free", "standard", "premium"]
SubscriptionStatus = Literal["active", "inactive", "cancelled"]


class CamelModel(BaseModel):
    """Base for records serialized to the frontend with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Subscription(CamelModel):
    tier: SubscriptionTierKey = "free"
    status: SubscriptionStatus = "active"
    provider: Optional[str] = None
    current_period_start: Optional[datetime] = None

    def to_json(self) -> dict:
        # Optional billing fields are omitted rather than sent as null
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MissionLimits(CamelModel):
    """Mission slot budget. available_slots never exceeds max_active_missions."""
    max_active_missions: int
    available_slots: int
    last_refresh: datetime
    next_refresh: datetime


class DailyMissions(CamelModel):
    selected_mission_ids: List[str] = Field(default_factory=list)
    last_refresh: datetime
    next_refresh: datetime


class User(CamelModel):
    user_id: str = Field(serialization_alias="id")
    email: Optional[str] = None
    username: Optional[str] = None
    valorant_tag: Optional[str] = None
    riot_id: Optional[Dict[str, Any]] = None
    subscription: Optional[Subscription] = None
    mission_limits: Optional[MissionLimits] = None
    daily_missions: Optional[DailyMissions] = None
    created_at: datetime
    updated_at: datetime

    @property
    def has_linked_riot_id(self) -> bool:
        return bool(self.riot_id and self.riot_id.get("puuid"))

    @property
    def is_subscription_initialized(self) -> bool:
        return self.subscription is not None and self.mission_limits is not None
