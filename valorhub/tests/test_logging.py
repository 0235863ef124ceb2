"""Tests for structured log formatting."""

import json
import logging

from valorhub.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    latency_bucket_ms,
    log_event,
    request_id_ctx_var,
)


def _record(**extra):
    record = logging.LogRecord("valorhub", logging.INFO, __file__, 1, "mission.accepted", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_structured_fields():
    record = _record(request_id="rid-1", user_id="user_1", mission_id="m1", event_type="mission.accepted")
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "mission.accepted"
    assert payload["request_id"] == "rid-1"
    assert payload["user_id"] == "user_1"
    assert payload["mission_id"] == "m1"
    assert "error_code" not in payload


def test_request_id_filter_uses_context():
    token = request_id_ctx_var.set("ctx-rid")
    try:
        record = _record()
        RequestIdFilter().filter(record)
    finally:
        request_id_ctx_var.reset(token)
    assert record.request_id == "ctx-rid"


def test_latency_buckets():
    assert latency_bucket_ms(None) == "unknown"
    assert latency_bucket_ms(5) == "<10ms"
    assert latency_bucket_ms(250) == "100-500ms"
    assert latency_bucket_ms(2500) == ">=1000ms"


def test_log_event_truncates_extra(caplog):
    with caplog.at_level(logging.INFO, logger="valorhub"):
        log_event("info", "i18n.loaded", event_type="i18n.loaded", extra={"note": "x" * 1000})
    record = caplog.records[-1]
    assert record.event_type == "i18n.loaded"
    assert record.note.endswith("...<truncated>")
    assert len(record.note) < 1000
