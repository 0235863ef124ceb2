"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults (StaticPool for in-memory SQLite)
- Test database support
- Table definitions for users, missions and user missions
"""
from datetime import datetime, timezone
from typing import Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, DateTime, Boolean, JSON, Text, Index, ForeignKey, text
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func
from sqlalchemy.exc import SQLAlchemyError
import logging
import os

from valorhub.core.config import settings
from valorhub.core.errors import PersistenceError

logger = logging.getLogger("valorhub")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        _engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )

    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def dispose_engine() -> None:
    """Dispose the current engine (tests switch databases between sessions)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.execute(...)
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def store_session(operation: str, **context):
    """
    Session scope for service-level store operations.

    Driver failures are logged with context and re-raised as
    PersistenceError so callers see a generic 500.
    """
    try:
        with get_db_session() as session:
            yield session
    except SQLAlchemyError as e:
        logger.error(
            f"store.{operation} failed: {e}",
            exc_info=True,
            extra={"error_code": "persistence_error", **context},
        )
        raise PersistenceError(f"{operation} failed") from e


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


def drop_all_tables():
    """
    Drop all tables defined in metadata.

    WARNING: This is destructive! Only use in tests or development.
    """
    engine = get_engine()
    metadata.drop_all(bind=engine)


def reset_database():
    """
    Reset the database by dropping and recreating all tables.

    WARNING: This is destructive! Only use in tests.
    """
    drop_all_tables()
    create_all_tables()


def check_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from drivers that drop tzinfo (SQLite)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Users table. subscription_*, limits_* and daily_* column groups are the
# embedded subscription / missionLimits / dailyMissions records; a NULL
# subscription_tier or limits_max_active means the record is absent.
users = Table(
    'app_users',
    metadata,
    Column('user_id', String(100), primary_key=True),
    Column('email', String(320), nullable=True),
    Column('username', String(100), nullable=True),
    Column('valorant_tag', String(100), nullable=True),
    Column('riot_id', JSON, nullable=True),
    Column('riot_puuid', String(100), nullable=True, unique=True),
    Column('subscription_tier', String(20), nullable=True),
    Column('subscription_status', String(20), nullable=True),
    Column('subscription_provider', String(50), nullable=True),
    Column('subscription_period_start', DateTime(timezone=True), nullable=True),
    Column('limits_max_active', Integer, nullable=True),
    Column('limits_available_slots', Integer, nullable=True),
    Column('limits_last_refresh', DateTime(timezone=True), nullable=True),
    Column('limits_next_refresh', DateTime(timezone=True), nullable=True),
    Column('daily_mission_ids', JSON, nullable=True),
    Column('daily_last_refresh', DateTime(timezone=True), nullable=True),
    Column('daily_next_refresh', DateTime(timezone=True), nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_users_created_at', 'created_at'),
)

# Mission catalog
missions = Table(
    'missions',
    metadata,
    Column('id', String(64), primary_key=True),
    Column('title', Text, nullable=False),
    Column('description', Text, nullable=False),
    Column('type', String(20), nullable=False),
    Column('target', Integer, nullable=False),
    Column('reward', Integer, nullable=False),
    Column('difficulty', String(20), nullable=False),
    Column('is_active', Boolean, nullable=False, default=True),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Column('updated_at', DateTime(timezone=True), nullable=False),
    # Listing pattern: active missions by difficulty, newest first
    Index('idx_missions_active_difficulty_created', 'is_active', 'difficulty', 'created_at'),
)

# Missions accepted by users
user_missions = Table(
    'user_missions',
    metadata,
    Column('id', String(64), primary_key=True),
    Column('user_id', String(100), ForeignKey('app_users.user_id'), nullable=False, index=True),
    Column('mission_id', String(64), ForeignKey('missions.id'), nullable=False, index=True),
    Column('progress', Integer, nullable=False, default=0),
    Column('is_completed', Boolean, nullable=False, default=False),
    Column('started_at', DateTime(timezone=True), nullable=False),
    Column('accepted_at', DateTime(timezone=True), nullable=False),
    Column('last_updated', DateTime(timezone=True), nullable=False),
    Column('completed_at', DateTime(timezone=True), nullable=True),
    # Active-mission counting pattern: (user_id, is_completed)
    Index('idx_user_missions_user_completed', 'user_id', 'is_completed'),
    Index('idx_user_missions_user_started', 'user_id', 'started_at'),
)
