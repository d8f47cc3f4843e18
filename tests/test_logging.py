"""
Unit tests for structured logging helpers.
"""
import json
import logging

import pytest

from app.utils.logging import JSONFormatter, log_security_event


@pytest.mark.unit
class TestJSONFormatter:

    def test_context_fields_are_copied(self) -> None:
        record = logging.LogRecord("app.test", logging.WARNING, __file__, 10, "denied %s", ("x",), None)
        record.tenant_id = "t-1"
        record.security_event = True

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "denied x"
        assert payload["level"] == "WARNING"
        assert payload["tenant_id"] == "t-1"
        assert payload["security_event"] is True
        assert "user_id" not in payload


@pytest.mark.unit
def test_security_event_carries_details(caplog) -> None:
    logger = logging.getLogger("app.security.test")

    with caplog.at_level(logging.WARNING, logger="app.security.test"):
        log_security_event("tenant_isolation_denied", {"user_id": "u-1", "tenant_id": "t-1"}, logger)

    record = caplog.records[-1]
    assert record.getMessage() == "SECURITY EVENT: tenant_isolation_denied"
    assert record.event_type == "tenant_isolation_denied"
    assert record.user_id == "u-1"
