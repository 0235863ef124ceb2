"""
User missions API.

- GET  /api/user-missions: the caller's accepted missions
- POST /api/user-missions: accept a mission
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from valorhub.api.deps import read_json_object
from valorhub.core.auth import get_current_user_id
from valorhub.features.user_missions.service import accept_mission, list_user_missions

router = APIRouter(prefix="/api/user-missions", tags=["user-missions"])


@router.get("")
def get_user_missions(user_id: str = Depends(get_current_user_id)):
    return [user_mission.to_json() for user_mission in list_user_missions(user_id)]


@router.post("")
async def start_mission(request: Request, user_id: str = Depends(get_current_user_id)):
    """
    Errors:
        400: no mission id, no profile, no linked Riot ID, already active, limit reached
        404: unknown mission
    """
    payload = await read_json_object(request)
    user_mission = accept_mission(user_id, payload.get("missionId"))
    content = user_mission.to_json()
    content.pop("mission", None)
    return JSONResponse(status_code=201, content=content)
