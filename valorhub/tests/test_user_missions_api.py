"""Tests for accepting missions under tier and slot limits."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy import select, update

from valorhub.core.database import get_db_session, user_missions, users
from valorhub.features.missions.service import seed_missions
from valorhub.features.user_missions.service import accept_mission
from valorhub.features.users import service as users_service
from valorhub.features.users.service import change_tier


def _link(client, headers, puuid="puuid-1"):
    player = {"puuid": puuid, "name": "Player", "tag": "EUW"}
    resp = client.post("/api/riot-id/link", json={"playerData": player, "username": "player"}, headers=headers)
    assert resp.status_code in (200, 201)


def _user_row(user_id):
    with get_db_session() as session:
        return session.execute(select(users).where(users.c.user_id == user_id)).first()


def _accept(client, headers, mission_id):
    return client.post("/api/user-missions", json={"missionId": mission_id}, headers=headers)


def test_accept_mission_consumes_slot(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)

    resp = _accept(client, user_headers, missions[0].id)
    assert resp.status_code == 201
    body = resp.json()
    assert body["missionId"] == missions[0].id
    assert body["progress"] == 0
    assert body["isCompleted"] is False
    assert body["startedAt"] == body["acceptedAt"]

    row = _user_row(user_headers["X-User-Id"])
    assert row.subscription_tier == "free"
    assert row.limits_available_slots == 2


def test_slot_decrement_uses_stored_value(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)
    user_id = user_headers["X-User-Id"]
    snapshot = users_service.ensure_subscription(users_service.require_user(user_id))
    assert snapshot.mission_limits.available_slots == 3

    # Both accepts start from the same snapshot, as overlapping requests would.
    with patch.object(users_service, "refresh_mission_slots_if_due", return_value=snapshot):
        accept_mission(user_id, missions[0].id)
        accept_mission(user_id, missions[1].id)

    assert _user_row(user_id).limits_available_slots == 1


def test_accept_requires_mission_id(client, user_headers):
    _link(client, user_headers)
    resp = client.post("/api/user-missions", json={}, headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Mission ID is required"


def test_accept_requires_profile(client, user_headers):
    missions = seed_missions()
    resp = _accept(client, user_headers, missions[0].id)
    assert resp.status_code == 400
    assert "complete setup" in resp.json()["detail"]


def test_accept_requires_linked_riot_id(client, user_headers):
    missions = seed_missions()
    client.post("/api/users", json={"email": "a@example.com", "username": "a"}, headers=user_headers)
    resp = _accept(client, user_headers, missions[0].id)
    assert resp.status_code == 400
    assert "Riot ID" in resp.json()["detail"]


def test_accept_same_mission_twice(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)
    _accept(client, user_headers, missions[0].id)
    resp = _accept(client, user_headers, missions[0].id)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Mission already active"


def test_unknown_mission(client, user_headers):
    seed_missions()
    _link(client, user_headers)
    resp = _accept(client, user_headers, "does-not-exist")
    assert resp.status_code == 404


def test_active_mission_limit_for_free_tier(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)
    for mission in missions[:3]:
        assert _accept(client, user_headers, mission.id).status_code == 201

    resp = _accept(client, user_headers, missions[3].id)
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "limit_exceeded"
    assert error["currentTier"] == "free"
    assert error["maxMissions"] == 3
    assert error["activeMissionsCount"] == 3


def test_no_slots_left_reports_hours_until_refresh(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)
    user_id = user_headers["X-User-Id"]
    for mission in missions[:3]:
        _accept(client, user_headers, mission.id)
    with get_db_session() as session:
        session.execute(update(user_missions).where(user_missions.c.user_id == user_id).values(is_completed=True))

    resp = _accept(client, user_headers, missions[3].id)
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "limit_exceeded"
    assert error["availableSlots"] == 0
    assert 23 <= error["hoursUntilRefresh"] <= 24


def test_slots_refresh_after_window(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)
    user_id = user_headers["X-User-Id"]
    _accept(client, user_headers, missions[0].id)

    past = datetime.now(timezone.utc) - timedelta(hours=25)
    with get_db_session() as session:
        session.execute(
            update(users)
            .where(users.c.user_id == user_id)
            .values(limits_available_slots=0, limits_last_refresh=past, limits_next_refresh=past + timedelta(hours=24))
        )

    assert _accept(client, user_headers, missions[1].id).status_code == 201
    row = _user_row(user_id)
    assert row.limits_available_slots == 2
    last_refresh = row.limits_last_refresh.replace(tzinfo=timezone.utc)
    assert datetime.now(timezone.utc) - last_refresh < timedelta(minutes=5)


def test_premium_tier_allows_more_missions(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)
    client.post("/api/users/initialize-subscription", headers=user_headers)
    change_tier(user_headers["X-User-Id"], "premium")

    for mission in missions[:5]:
        assert _accept(client, user_headers, mission.id).status_code == 201
    assert _user_row(user_headers["X-User-Id"]).limits_available_slots == 5


def test_list_user_missions_newest_first_with_mission(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)
    user_id = user_headers["X-User-Id"]
    _accept(client, user_headers, missions[0].id)
    _accept(client, user_headers, missions[1].id)

    older = datetime(2024, 1, 1, tzinfo=timezone.utc)
    with get_db_session() as session:
        session.execute(
            update(user_missions)
            .where(user_missions.c.user_id == user_id)
            .where(user_missions.c.mission_id == missions[0].id)
            .values(started_at=older)
        )

    resp = client.get("/api/user-missions", headers=user_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [um["missionId"] for um in body] == [missions[1].id, missions[0].id]
    assert body[0]["mission"]["title"] == missions[1].title


def test_filter_missions_by_status(client, user_headers):
    missions = seed_missions()
    _link(client, user_headers)
    _accept(client, user_headers, missions[0].id)

    active = client.get("/api/missions", params={"status": "active"}, headers=user_headers).json()
    assert [m["id"] for m in active] == [missions[0].id]

    available = client.get("/api/missions", params={"status": "available"}, headers=user_headers).json()
    assert missions[0].id not in {m["id"] for m in available}
    assert len(available) == len(missions) - 1
