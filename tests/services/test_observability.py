"""Structured Logging — JSON formatter surfaces extra fields."""

import json
import logging

from notehub.infrastructure.observability import JSONFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("notehub.test", logging.INFO, __file__, 1, "hello", None, None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_known_extras():
    line = JSONFormatter().format(_record(request_id=7, event_type="status_updated", topic="pool"))
    payload = json.loads(line)
    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == 7
    assert payload["event_type"] == "status_updated"
    assert payload["topic"] == "pool"


def test_json_formatter_skips_absent_extras():
    payload = json.loads(JSONFormatter().format(_record()))
    assert "user_id" not in payload
    assert "connection_id" not in payload
