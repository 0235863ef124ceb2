"""Tests for deterministic daily mission selection."""

from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select

from valorhub.core.database import get_db_session, users
from valorhub.features.missions.daily import (
    _to_int32,
    build_daily_selection,
    seed_for,
    select_daily_mission_ids,
    should_refresh_daily,
)
from valorhub.features.missions.service import seed_missions
from valorhub.models.mission import Mission

NOW = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)


def _catalog(n=10):
    return [
        Mission(
            id=f"m{i}",
            title=f"Mission {i}",
            description="desc",
            type="kills",
            target=5,
            reward=100,
            difficulty="easy",
            created_at=NOW,
            updated_at=NOW,
        )
        for i in range(n)
    ]


def test_to_int32_wraps():
    assert _to_int32(2 ** 31) == -(2 ** 31)
    assert _to_int32(2 ** 32 + 5) == 5
    assert _to_int32(-1) == -1


def test_seed_is_non_negative_and_stable():
    day = date(2025, 6, 1)
    assert seed_for("user_1", day) == seed_for("user_1", day)
    assert seed_for("user_1", day) >= 0


def test_selection_is_deterministic_per_user_and_day():
    catalog = _catalog()
    first = select_daily_mission_ids(catalog, "user_1", 3, date(2025, 6, 1))
    second = select_daily_mission_ids(list(catalog), "user_1", 3, date(2025, 6, 1))
    assert first == second
    assert len(first) == 3
    assert len(set(first)) == 3
    assert set(first) <= {m.id for m in catalog}


def test_selection_changes_across_days():
    catalog = _catalog()
    picks = {
        tuple(select_daily_mission_ids(catalog, "user_1", 3, date(2025, 6, 1) + timedelta(days=d)))
        for d in range(7)
    }
    assert len(picks) > 1


def test_small_catalog_returned_whole():
    catalog = _catalog(2)
    assert select_daily_mission_ids(catalog, "user_1", 3, date(2025, 6, 1)) == ["m0", "m1"]


def test_should_refresh_daily():
    daily = build_daily_selection(_catalog(), "user_1", 3, NOW)
    assert should_refresh_daily(None, NOW) is True
    assert should_refresh_daily(daily, NOW + timedelta(hours=23)) is False
    assert should_refresh_daily(daily, NOW + timedelta(hours=24)) is True
    assert daily.next_refresh == NOW + timedelta(hours=24)


def test_daily_missions_api_is_stable(client, user_headers):
    seed_missions()
    player = {"puuid": "puuid-daily", "name": "Player", "tag": "EUW"}
    client.post("/api/riot-id/link", json={"playerData": player, "username": "player"}, headers=user_headers)

    first = client.get("/api/daily-missions", headers=user_headers)
    assert first.status_code == 200
    body = first.json()
    assert body["tier"] == "free"
    assert body["maxMissions"] == 3
    assert body["isLimited"] is True
    assert len(body["missions"]) == 3

    second = client.get("/api/daily-missions", headers=user_headers).json()
    assert [m["id"] for m in second["missions"]] == [m["id"] for m in body["missions"]]
    assert second["nextRefresh"] == body["nextRefresh"]

    with get_db_session() as session:
        row = session.execute(select(users).where(users.c.user_id == user_headers["X-User-Id"])).first()
    assert sorted(row.daily_mission_ids) == sorted(m["id"] for m in body["missions"])


def test_daily_missions_unknown_user(client, user_headers):
    assert client.get("/api/daily-missions", headers=user_headers).status_code == 404
