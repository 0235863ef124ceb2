"""Tests for normalized error responses and request ids."""

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from valorhub.core.errors import (
    AppError,
    NotFoundError,
    PersistenceError,
    app_error_handler,
    unhandled_exception_handler,
)
from valorhub.core.middleware.request_id import RequestIdMiddleware


def _make_app():
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/rid")
    async def rid(request: Request):
        return {"request_id": getattr(request.state, "request_id", None)}

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Mission not found")

    @app.get("/store")
    async def store():
        raise PersistenceError("get_user failed: connection refused")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return app


def test_generates_request_id_when_missing():
    resp = TestClient(_make_app()).get("/rid")
    assert resp.headers.get("x-request-id")
    assert resp.headers["x-request-id"] == resp.json()["request_id"]


def test_echoes_provided_request_id():
    resp = TestClient(_make_app()).get("/rid", headers={"X-Request-Id": "test-rid-123"})
    assert resp.headers.get("x-request-id") == "test-rid-123"


def test_oversized_request_id_is_replaced():
    resp = TestClient(_make_app()).get("/rid", headers={"X-Request-Id": "r" * 500})
    rid = resp.headers["x-request-id"]
    assert rid != "r" * 500
    assert len(rid) == 36
    assert resp.json()["request_id"] == rid


def test_app_error_has_standard_shape():
    resp = TestClient(_make_app()).get("/missing")
    assert resp.status_code == 404
    body = resp.json()
    assert body["error"]["code"] == "not_found"
    assert body["error"]["message"] == "Mission not found"
    assert body["detail"] == "Mission not found"
    assert body["error"]["request_id"] == resp.headers["x-request-id"]


def test_persistence_error_hides_internal_message():
    resp = TestClient(_make_app()).get("/store")
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal server error"
    assert "connection refused" not in resp.text


def test_unhandled_exception_is_internal_error():
    client = TestClient(_make_app(), raise_server_exceptions=False)
    resp = client.get("/boom")
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "internal_error"
    assert "kaboom" not in resp.text


def test_main_app_validation_error_carries_request_id(client, user_headers):
    resp = client.post("/api/missions", json={"title": "only"}, headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["request_id"] == resp.headers["x-request-id"]
