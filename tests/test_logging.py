"""Structured logging tests."""

import json
import logging

from servicedesk.shared.infrastructure.logging import CustomJsonFormatter, get_context_logger


def format_record(**extra):
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="test")
    record = logging.LogRecord("servicedesk", logging.INFO, __file__, 1, "User logged in", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


class TestJsonFormatter:
    def test_adds_timestamp_and_environment(self):
        payload = format_record(correlation_id="abc")
        assert payload["message"] == "User logged in"
        assert payload["environment"] == "test"
        assert payload["correlation_id"] == "abc"
        assert "timestamp" in payload

    def test_redacts_credentials(self):
        payload = format_record(password="hunter2", access_token="eyJ", login="admin")
        assert payload["password"] == "***REDACTED***"
        assert payload["access_token"] == "***REDACTED***"
        assert payload["login"] == "admin"


class TestContextLogger:
    def test_bound_context_merges_with_call_site_extra(self, caplog):
        log = get_context_logger("servicedesk.test", "corr-1", path="/tickets")
        with caplog.at_level(logging.INFO, logger="servicedesk.test"):
            log.info("Request completed", extra={"status_code": 201})

        record = caplog.records[-1]
        assert record.correlation_id == "corr-1"
        assert record.path == "/tickets"
        assert record.status_code == 201
