"""Riot account linking: POST /api/riot-id/link."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from valorhub.api.deps import read_json_object
from valorhub.core.auth import get_current_user_id
from valorhub.features.users.service import link_riot_id

router = APIRouter(prefix="/api/riot-id", tags=["riot-id"])


@router.post("/link")
async def link_account(request: Request, user_id: str = Depends(get_current_user_id)):
    payload = await read_json_object(request)
    created, user = link_riot_id(user_id, payload.get("playerData"), payload.get("username"))
    return JSONResponse(status_code=201 if created else 200, content=user.to_json())
