"""Daily mission selection: GET /api/daily-missions."""

from fastapi import APIRouter, Depends

from valorhub.core.auth import get_current_user_id
from valorhub.features.missions.daily import get_daily_missions

router = APIRouter(prefix="/api/daily-missions", tags=["daily-missions"])


@router.get("")
def daily_missions(user_id: str = Depends(get_current_user_id)):
    return get_daily_missions(user_id)
