"""Request helpers shared by the API routers."""

import json
from typing import Any, Dict

from fastapi import Request

from valorhub.core.errors import ValidationError


async def read_json_object(request: Request) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object.

    Handlers validate fields themselves so that missing or malformed input
    is reported as a 400 validation error.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body
