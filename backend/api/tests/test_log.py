"""Tests for log redaction and request-id binding."""

from __future__ import annotations

from structlog.testing import capture_logs

from publishing_api.log import redact_secrets


class TestRedactSecrets:
    def test_secret_keys_are_redacted(self):
        event = redact_secrets(None, "info", {
            "event": "login",
            "password": "hunter2",
            "admin_password_hash": "$2b$12$abc",
            "token": "eyJ.x.y",
            "username": "AhamCore",
        })
        assert event["password"] == "***REDACTED***"
        assert event["admin_password_hash"] == "***REDACTED***"
        assert event["token"] == "***REDACTED***"
        assert event["username"] == "AhamCore"

    def test_secret_values_inside_strings_are_masked(self):
        event = redact_secrets(None, "info", {
            "event": "connect",
            "url": "postgresql+psycopg://app:s3cret@db:5432/app",
            "header": "Bearer eyJ.abc.def",
            "query": "a=1&token=xyz",
        })
        assert "s3cret" not in event["url"]
        assert event["url"].endswith("@db:5432/app")
        assert event["header"] == "Bearer ***"
        assert event["query"] == "a=1&token=***"

    def test_nested_values(self):
        event = redact_secrets(None, "info", {"event": "x", "extra": {"dsn": "sqlite://u:p@h/db"}})
        assert event["extra"]["dsn"] == "sqlite://u:***@h/db"


def test_request_logs_carry_request_id(client):
    with capture_logs() as logs:
        r = client.get("/healthz")

    request_id = r.headers["X-Request-ID"]
    completed = [e for e in logs if e["event"] == "request_completed"]
    assert len(completed) == 1
    assert completed[0]["request_id"] == request_id
    assert completed[0]["status_code"] == 200
    assert completed[0]["path"] == "/healthz"
