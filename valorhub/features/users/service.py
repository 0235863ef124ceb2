"""
User domain service.

- get_user / require_user
- create_user / update_user (profile fields)
- link_riot_id (one Riot account per user)
- initialize_subscription (idempotent free-tier bootstrap)
- ensure_subscription / refresh_mission_slots_if_due
- change_tier
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import insert, select, update

from valorhub.core.database import as_utc, store_session, users
from valorhub.core.errors import ConflictError, NotFoundError, PermissionError, ValidationError
from valorhub.features.subscriptions.lifecycle import (
    initial_mission_limits,
    refresh_limits,
    should_refresh,
)
from valorhub.features.subscriptions.policy import (
    DEFAULT_TIER,
    get_max_active_missions,
    get_subscription_tier,
    is_valid_tier,
)
from valorhub.models.user import DailyMissions, MissionLimits, Subscription, User

logger = logging.getLogger("valorhub")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_user(row) -> User:
    subscription = None
    if row.subscription_tier is not None:
        subscription = Subscription(
            tier=row.subscription_tier,
            status=row.subscription_status or "active",
            provider=row.subscription_provider,
            current_period_start=as_utc(row.subscription_period_start),
        )

    mission_limits = None
    if row.limits_max_active is not None:
        mission_limits = MissionLimits(
            max_active_missions=row.limits_max_active,
            available_slots=row.limits_available_slots if row.limits_available_slots is not None else row.limits_max_active,
            last_refresh=as_utc(row.limits_last_refresh),
            next_refresh=as_utc(row.limits_next_refresh),
        )

    daily_missions = None
    if row.daily_last_refresh is not None:
        daily_missions = DailyMissions(
            selected_mission_ids=list(row.daily_mission_ids or []),
            last_refresh=as_utc(row.daily_last_refresh),
            next_refresh=as_utc(row.daily_next_refresh),
        )

    return User(
        user_id=row.user_id,
        email=row.email,
        username=row.username,
        valorant_tag=row.valorant_tag,
        riot_id=row.riot_id,
        subscription=subscription,
        mission_limits=mission_limits,
        daily_missions=daily_missions,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def subscription_values(subscription: Subscription) -> Dict[str, Any]:
    return {
        "subscription_tier": subscription.tier,
        "subscription_status": subscription.status,
        "subscription_provider": subscription.provider,
        "subscription_period_start": subscription.current_period_start,
    }


def limits_values(limits: MissionLimits) -> Dict[str, Any]:
    return {
        "limits_max_active": limits.max_active_missions,
        "limits_available_slots": limits.available_slots,
        "limits_last_refresh": limits.last_refresh,
        "limits_next_refresh": limits.next_refresh,
    }


def get_user(user_id: str) -> Optional[User]:
    with store_session("get_user", user_id=user_id) as session:
        row = session.execute(select(users).where(users.c.user_id == user_id)).first()
        if not row:
            return None
        return _row_to_user(row)


def require_user(user_id: str) -> User:
    user = get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _update_user_row(user_id: str, operation: str, values: Dict[str, Any]) -> None:
    with store_session(operation, user_id=user_id) as session:
        session.execute(update(users).where(users.c.user_id == user_id).values(**values))


def create_user(user_id: str, payload: Dict[str, Any], now: Optional[datetime] = None) -> User:
    """
    Create a profile initialized on the free tier.

    Raises:
        ValidationError: email or username missing
        ConflictError: a profile already exists for user_id
    """
    email = _clean_text(payload.get("email"))
    username = _clean_text(payload.get("username"))
    if not email or not username:
        raise ValidationError("Email and username are required")

    if get_user(user_id) is not None:
        raise ConflictError("User already exists")

    now = now or utc_now()
    subscription = Subscription(tier=DEFAULT_TIER, status="active")
    limits = initial_mission_limits(DEFAULT_TIER, now)

    with store_session("create_user", user_id=user_id) as session:
        session.execute(
            insert(users).values(
                user_id=user_id,
                email=email,
                username=username,
                valorant_tag=_clean_text(payload.get("valorantTag")),
                created_at=now,
                updated_at=now,
                **subscription_values(subscription),
                **limits_values(limits),
            )
        )

    logger.info(
        "user.created",
        extra={"user_id": user_id, "event_type": "user.created"},
    )
    return require_user(user_id)


def update_user(user_id: str, payload: Dict[str, Any], now: Optional[datetime] = None) -> User:
    """
    Update username and/or valorantTag.

    The valorantTag becomes immutable once a Riot ID has been linked.
    """
    current = require_user(user_id)
    values: Dict[str, Any] = {"updated_at": now or utc_now()}

    username = _clean_text(payload.get("username"))
    if username:
        values["username"] = username

    valorant_tag = _clean_text(payload.get("valorantTag"))
    if valorant_tag:
        if current.riot_id:
            raise PermissionError(
                "Riot ID cannot be changed once verified. Contact support if you need to update it."
            )
        values["valorant_tag"] = valorant_tag

    _update_user_row(user_id, "update_user", values)
    return require_user(user_id)


def link_riot_id(user_id: str, player_data: Dict[str, Any], username: Any, now: Optional[datetime] = None) -> Tuple[bool, User]:
    """
    Attach a verified Riot account to the user, creating the profile if needed.

    Profiles created here carry no subscription records; they are set up by
    initialize_subscription on first use. Returns (created, user).

    Raises:
        ValidationError: player data or username missing
        ConflictError: the Riot account is linked to another user
    """
    username = _clean_text(username)
    if not isinstance(player_data, dict) or not username:
        raise ValidationError("Player data and username are required")
    puuid = _clean_text(player_data.get("puuid"))
    name = _clean_text(player_data.get("name"))
    tag = _clean_text(player_data.get("tag"))
    if not puuid or not name or not tag:
        raise ValidationError("Player data must include puuid, name and tag")

    with store_session("find_riot_owner", user_id=user_id) as session:
        owner = session.execute(
            select(users.c.user_id).where(users.c.riot_puuid == puuid)
        ).scalar()
    if owner is not None and owner != user_id:
        raise ConflictError("This Riot ID is already linked to another account")

    now = now or utc_now()
    values = {
        "username": username,
        "valorant_tag": f"{name}#{tag}",
        "riot_id": player_data,
        "riot_puuid": puuid,
        "updated_at": now,
    }

    if get_user(user_id) is not None:
        _update_user_row(user_id, "link_riot_id", values)
        created = False
    else:
        with store_session("link_riot_id", user_id=user_id) as session:
            session.execute(insert(users).values(user_id=user_id, created_at=now, **values))
        created = True

    logger.info(
        "riot_id.linked",
        extra={"user_id": user_id, "event_type": "riot_id.linked"},
    )
    return created, require_user(user_id)


def initialize_subscription(user_id: str, now: Optional[datetime] = None) -> Tuple[bool, User]:
    """
    Bootstrap the free-tier subscription and mission limits (idempotent).

    Returns (created, user). When both records already exist nothing is
    written and the stored values are returned unchanged.

    Raises:
        NotFoundError: no profile for user_id
    """
    user = require_user(user_id)
    if user.is_subscription_initialized:
        return False, user

    now = now or utc_now()
    subscription = Subscription(tier=DEFAULT_TIER, status="active")
    limits = initial_mission_limits(DEFAULT_TIER, now)
    _update_user_row(
        user_id,
        "initialize_subscription",
        {**subscription_values(subscription), **limits_values(limits), "updated_at": now},
    )

    logger.info(
        "subscription.initialized",
        extra={"user_id": user_id, "event_type": "subscription.initialized"},
    )
    return True, require_user(user_id)


def ensure_subscription(user: User, now: Optional[datetime] = None) -> User:
    """Initialize the subscription records on first use, otherwise return user unchanged."""
    if user.is_subscription_initialized:
        return user
    _, initialized = initialize_subscription(user.user_id, now=now)
    return initialized


def refresh_mission_slots_if_due(user: User, now: Optional[datetime] = None) -> User:
    """
    Reset available slots to the tier maximum when a full window has elapsed.

    The new window starts at `now`, not at the previously scheduled refresh.
    """
    now = now or utc_now()
    if not should_refresh(user.mission_limits, now):
        return user

    tier = get_subscription_tier(user)
    limits = refresh_limits(get_max_active_missions(tier), now)
    _update_user_row(user.user_id, "refresh_mission_slots", {**limits_values(limits), "updated_at": now})

    logger.info(
        "mission_slots.refreshed",
        extra={"user_id": user.user_id, "event_type": "mission_slots.refreshed"},
    )
    return user.model_copy(update={"mission_limits": limits, "updated_at": now})


def change_tier(user_id: str, tier: str, *, provider: Optional[str] = None, now: Optional[datetime] = None) -> User:
    """
    Move a user to another tier and restart their slot window at the new maximum.

    Raises:
        ValidationError: unknown tier
        NotFoundError: no profile for user_id
    """
    if not is_valid_tier(tier):
        raise ValidationError("Invalid subscription tier")

    require_user(user_id)
    now = now or utc_now()
    subscription = Subscription(tier=tier, status="active", provider=provider, current_period_start=now)
    limits = initial_mission_limits(tier, now)
    _update_user_row(
        user_id,
        "change_tier",
        {**subscription_values(subscription), **limits_values(limits), "updated_at": now},
    )

    logger.info(
        "subscription.tier_changed",
        extra={"user_id": user_id, "event_type": "subscription.tier_changed"},
    )
    return require_user(user_id)


def save_daily_missions(user_id: str, daily: DailyMissions) -> None:
    _update_user_row(
        user_id,
        "save_daily_missions",
        {
            "daily_mission_ids": list(daily.selected_mission_ids),
            "daily_last_refresh": daily.last_refresh,
            "daily_next_refresh": daily.next_refresh,
            "updated_at": daily.last_refresh,
        },
    )
