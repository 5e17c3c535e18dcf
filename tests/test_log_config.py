# tests/test_log_config.py

"""
Logging Setup Tests - structured payloads reach the rendered output
"""

import json
import logging

from app.core.log_config import build_formatter


def record(message, **extra):
    fields = {
        "name": "app.services.session_service",
        "levelno": logging.INFO,
        "levelname": "INFO",
        "msg": message,
    }
    fields.update(extra)
    return logging.makeLogRecord(fields)


class TestJsonFormat:

    def test_extra_fields_rendered(self):
        line = build_formatter("json").format(
            record("session_activated", session_id="s-1", activated_by="u-1")
        )
        payload = json.loads(line)

        assert payload["event"] == "session_activated"
        assert payload["session_id"] == "s-1"
        assert payload["activated_by"] == "u-1"
        assert payload["level"] == "info"
        assert payload["logger"] == "app.services.session_service"
        assert "timestamp" in payload

    def test_quotes_stay_valid_json(self):
        line = build_formatter("json").format(
            record('sample_excluded', reason='Label says "organic"')
        )
        assert json.loads(line)["reason"] == 'Label says "organic"'

    def test_non_string_extras(self):
        line = build_formatter("json").format(
            record("sample_auto_excluded", exclusion_votes=2, counted_votes=3, trimmed=True)
        )
        payload = json.loads(line)
        assert (payload["exclusion_votes"], payload["counted_votes"], payload["trimmed"]) == (2, 3, True)


class TestConsoleFormat:

    def test_extra_fields_rendered(self):
        line = build_formatter("console").format(
            record("session_completed", session_id="s-1")
        )
        assert "session_completed" in line
        assert "session_id=s-1" in line
