import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load env from the project root .env
project_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(project_dir, ".env"))

# Import after dotenv is loaded
from valorhub.core.config import cors_origins, settings, validate_config
from valorhub.core.database import create_all_tables, dispose_engine
from valorhub.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from valorhub.core.logging import configure_logging
from valorhub.core.middleware.request_id import RequestIdMiddleware
from valorhub.core.validation import validate_env
from valorhub.api import (
    daily_missions,
    health,
    i18n,
    missions,
    riot_id,
    subscriptions,
    user_missions,
    users,
)
from valorhub.features.i18n.locales import registry

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("valorhub")
    logger.info("Starting ValorHub backend...")
    registry.load()
    create_all_tables()
    try:
        yield
    finally:
        logging.getLogger("valorhub").info("Stopping ValorHub backend...")
        dispose_engine()


app = FastAPI(title="ValorHub - Backend", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(missions.router)
app.include_router(users.router)
app.include_router(riot_id.router)
app.include_router(subscriptions.router)
app.include_router(user_missions.router)
app.include_router(daily_missions.router)
app.include_router(i18n.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("valorhub.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=settings.ENV == "development")
