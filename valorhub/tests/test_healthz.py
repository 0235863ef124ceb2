import logging

import valorhub.api.health as health_api
from valorhub.core.database import drop_all_tables


def test_healthz_always_ok(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"


def test_readyz_ok_with_tables(client):
    resp = client.get("/readyz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_readyz_reports_missing_tables(client):
    drop_all_tables()
    resp = client.get("/readyz")
    assert resp.status_code == 503
    assert "app_users" in resp.json()["detail"]


def test_readyz_db_unreachable(client, monkeypatch):
    monkeypatch.setattr(health_api, "check_connection", lambda: False)
    resp = client.get("/readyz")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "database unreachable"


def test_request_id_in_response_and_logs(client, caplog):
    with caplog.at_level(logging.INFO, logger="valorhub"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert any(r.getMessage() == "request.complete" for r in records)
