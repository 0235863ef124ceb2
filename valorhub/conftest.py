# valorhub/conftest.py
import os

import pytest

# Test configuration must be in place before valorhub modules read settings
os.environ.setdefault("ENV", "test")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("CLERK_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SKIP_ENV_VALIDATION", "1")


@pytest.fixture(scope="function", autouse=True)
def reset_db():
    """
    Recreate all tables before each test so every test starts from an
    empty in-memory database.
    """
    from valorhub.core.database import reset_database

    reset_database()
    yield


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from valorhub.main import app

    return TestClient(app)


@pytest.fixture
def user_headers():
    """X-User-Id auth for a fresh user id."""
    from uuid import uuid4

    return {"X-User-Id": f"user_{uuid4().hex[:12]}"}
