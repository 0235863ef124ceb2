"""
Auth dependency for the ValorHub API.

Validates Clerk JWTs and extracts user_id from request context.
Falls back to the X-User-Id header outside production when
ALLOW_USER_ID_HEADER is enabled (local development and tests).
"""
from typing import Optional
import logging

import jwt
from fastapi import Header, Request

from valorhub.core.clerk_auth import verify_jwt_token
from valorhub.core.config import settings
from valorhub.core.errors import AuthenticationError

logger = logging.getLogger("valorhub")


def verify_clerk_jwt(token: str) -> str:
    """
    Verify Clerk JWT and extract user_id from its 'sub' claim.

    Raises:
        AuthenticationError: Invalid, expired or subject-less token
    """
    try:
        claims = verify_jwt_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.PyJWTError as e:
        logger.debug(f"Invalid token: {e}")
        raise AuthenticationError("Invalid token")

    user_id = claims.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token")
    return user_id


def _header_fallback_allowed() -> bool:
    return settings.ALLOW_USER_ID_HEADER and settings.ENV.lower() != "production"


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Dev/test user ID"),
) -> str:
    """
    Extract the authenticated user ID.

    Priority:
    1. Clerk JWT from Authorization header
    2. X-User-Id header (dev/test only)
    3. AuthenticationError (401)
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        user_id = verify_clerk_jwt(auth_header[7:])
        request.state.user_id = user_id
        return user_id

    if x_user_id and x_user_id.strip() and _header_fallback_allowed():
        request.state.user_id = x_user_id.strip()
        return x_user_id.strip()

    raise AuthenticationError("Unauthorized")
