"""Tests for the JSON log formatter and request correlation ids."""

from __future__ import annotations

import json
import logging
import sys
import uuid

from erdstudio.core.logger import JSONFormatter, RequestIdFilter, ensure_request_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="erdstudio.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Project %s created",
        args=("blog",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_renders_json_with_extras():
    payload = json.loads(
        JSONFormatter().format(_record(request_id="rid-1", project_id="p-1", secret="x"))
    )

    assert payload["level"] == "INFO"
    assert payload["name"] == "erdstudio.test"
    assert payload["message"] == "Project blog created"
    assert payload["request_id"] == "rid-1"
    assert payload["project_id"] == "p-1"
    assert "secret" not in payload


def test_formatter_keeps_account_email_extras():
    payload = json.loads(
        JSONFormatter().format(_record(email="ada@example.com", context="password"))
    )

    assert payload["email"] == "ada@example.com"
    assert payload["context"] == "password"


def test_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JSONFormatter().format(record))

    assert "ValueError: boom" in payload["exc_info"]


def test_request_id_outside_request_is_random():
    assert uuid.UUID(ensure_request_id())
    assert ensure_request_id() != ensure_request_id()


def test_request_id_reuses_correlation_header(app):
    with app.test_request_context(headers={"X-Correlation-ID": "corr-42"}):
        assert ensure_request_id() == "corr-42"
        assert ensure_request_id() == "corr-42"


def test_request_id_is_stable_within_request(app):
    with app.test_request_context():
        first = ensure_request_id()
        record = _record()
        RequestIdFilter().filter(record)

        assert record.request_id == first


def test_response_carries_request_id(client):
    response = client.get("/api/v1/health", headers={"X-Request-ID": "rid-from-client"})

    assert response.headers["X-Request-ID"] == "rid-from-client"
