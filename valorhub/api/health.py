"""
Liveness and readiness endpoints.

- GET /healthz: process is up (no dependencies)
- GET /readyz: database reachable and tables present
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from valorhub.core.database import check_connection, get_engine
from valorhub.features.i18n.locales import registry

logger = logging.getLogger("valorhub")

router = APIRouter(tags=["health"])

REQUIRED_TABLES = ("app_users", "missions", "user_missions")


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz():
    """Readiness check: DB connectivity + required tables."""
    if not check_connection():
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})

    try:
        inspector = inspect(get_engine())
        missing = [table for table in REQUIRED_TABLES if not inspector.has_table(table)]
    except SQLAlchemyError as e:
        logger.error(f"[readyz] table inspection failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})

    if missing:
        detail = f"missing tables: {', '.join(missing)}"
        logger.warning(f"[readyz] {detail}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": detail})

    return {"status": "ok", "locale_errors": len(registry.errors)}
