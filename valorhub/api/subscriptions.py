"""
Subscription API.

- GET  /api/subscriptions: tier, limits and slot usage
- POST /api/subscriptions: change tier
"""

from fastapi import APIRouter, Depends, Request

from valorhub.api.deps import read_json_object
from valorhub.core.auth import get_current_user_id
from valorhub.features.subscriptions.service import get_subscription_status, update_subscription

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


@router.get("")
def subscription_status(user_id: str = Depends(get_current_user_id)):
    return get_subscription_status(user_id)


@router.post("")
async def change_subscription(request: Request, user_id: str = Depends(get_current_user_id)):
    payload = await read_json_object(request)
    return update_subscription(user_id, payload.get("tier"))
