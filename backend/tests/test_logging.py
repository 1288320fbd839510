"""Tests for logging configuration."""

import json
import logging
import sys

from inkwell.core.logging import JSONFormatter, get_logger, redact_token


def _record(message: str, *args) -> logging.LogRecord:
    return logging.LogRecord("inkwell.test", logging.WARNING, __file__, 1, message, args, None)


def test_json_formatter_fields():
    entry = json.loads(JSONFormatter().format(_record("Auth failed for %s", "bob")))

    assert entry["level"] == "WARNING"
    assert entry["logger"] == "inkwell.test"
    assert entry["message"] == "Auth failed for bob"
    assert "timestamp" in entry


def test_json_formatter_escapes_user_input():
    """Newlines and quotes in user-controlled values stay inside one log line."""
    line = JSONFormatter().format(_record('user "x"\n{"level": "CRITICAL"}'))

    assert "\n" not in line
    assert json.loads(line)["level"] == "WARNING"


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord(
            "inkwell.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )

    entry = json.loads(JSONFormatter().format(record))

    assert "ValueError: boom" in entry["exception"]


def test_get_logger_prefix():
    assert get_logger("main").name == "inkwell.main"


def test_json_formatter_includes_context_fields():
    record = _record("Auth failed")
    record.event = "auth_failed"
    record.code = "TOKEN_REVOKED"
    record.path = "/api/auth/me"

    entry = json.loads(JSONFormatter().format(record))

    assert entry["event"] == "auth_failed"
    assert entry["code"] == "TOKEN_REVOKED"
    assert entry["path"] == "/api/auth/me"
    assert "user_id" not in entry


def test_redact_token():
    token = "eyJhbGciOiJIUzI1NiJ9.eyJpZCI6MX0.signature-part"

    assert redact_token(token) == "eyJhbGciOiJIUzI1NiJ9..."
    assert redact_token("short") == "<redacted>"
    assert redact_token(None) == "<none>"

