"""
Mission catalog API.

- GET  /api/missions: active missions (optionally filtered)
- POST /api/missions: create a mission
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from valorhub.api.deps import read_json_object
from valorhub.core.auth import get_current_user_id
from valorhub.features.missions.filters import build_filters, filter_missions
from valorhub.features.missions.service import create_mission, list_active_missions
from valorhub.features.user_missions.service import list_user_missions

router = APIRouter(prefix="/api/missions", tags=["missions"])


@router.get("")
def get_missions(
    search: Optional[str] = Query(None, description="Case-insensitive match on title or description"),
    difficulty: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="available, active or completed for the caller"),
    user_id: str = Depends(get_current_user_id),
):
    """Active missions, easy to hard, newest first within a difficulty."""
    filters = build_filters(search=search, difficulty=difficulty, type=type, status=status)
    missions = list_active_missions()
    if filters.is_active:
        user_missions = list_user_missions(user_id) if filters.status != "all" else []
        missions = filter_missions(missions, user_missions, filters)
    return [mission.to_json() for mission in missions]


@router.post("")
async def post_mission(request: Request, user_id: str = Depends(get_current_user_id)):
    """
    Create a catalog mission.

    Errors:
        400: missing field, unknown type/difficulty, non-positive target or reward
    """
    payload = await read_json_object(request)
    mission = create_mission(payload, created_by=user_id)
    return JSONResponse(status_code=201, content=mission.to_json())
