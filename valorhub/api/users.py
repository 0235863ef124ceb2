"""
User profile API.

- GET  /api/users
- POST /api/users
- PUT  /api/users
- POST /api/users/initialize-subscription
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from valorhub.api.deps import read_json_object
from valorhub.core.auth import get_current_user_id
from valorhub.features.users import service as users_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
def get_profile(user_id: str = Depends(get_current_user_id)):
    return users_service.require_user(user_id).to_json()


@router.post("")
async def create_profile(request: Request, user_id: str = Depends(get_current_user_id)):
    payload = await read_json_object(request)
    user = users_service.create_user(user_id, payload)
    return JSONResponse(status_code=201, content=user.to_json())


@router.put("")
async def update_profile(request: Request, user_id: str = Depends(get_current_user_id)):
    payload = await read_json_object(request)
    return users_service.update_user(user_id, payload).to_json()


@router.post("/initialize-subscription")
def initialize_subscription(user_id: str = Depends(get_current_user_id)):
    """
    Bootstrap the free-tier subscription. Repeat calls write nothing and
    return the stored records.
    """
    created, user = users_service.initialize_subscription(user_id)
    return {
        "success": True,
        "message": "Subscription data initialized" if created else "User already has subscription data",
        "subscription": user.subscription.to_json(),
        "missionLimits": user.mission_limits.to_json(),
    }
