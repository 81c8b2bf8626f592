"""Unit tests for the logging utilities."""

from __future__ import annotations

import json
import logging

from flask import Flask

from postboard.core.logger import JSONFormatter, configure_logging, ensure_request_id


def test_configure_logging_sets_level() -> None:
    """``configure_logging`` should set the root logger level."""

    configure_logging("DEBUG")

    assert logging.getLogger().level == logging.DEBUG


def test_json_formatter_promotes_extra_fields() -> None:
    record = logging.LogRecord(
        name="postboard.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="refresh.reuse_detected",
        args=(),
        exc_info=None,
    )
    record.subject_id = "u1"
    record.record_id = "r1"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "refresh.reuse_detected"
    assert payload["level"] == "WARNING"
    assert payload["subject_id"] == "u1"
    assert payload["record_id"] == "r1"
    assert "provider" not in payload


def test_ensure_request_id_prefers_correlation_header() -> None:
    app = Flask(__name__)

    with app.test_request_context(headers={"X-Correlation-ID": "corr-123"}):
        assert ensure_request_id() == "corr-123"
        # Stable for the rest of the request
        assert ensure_request_id() == "corr-123"

    with app.test_request_context():
        generated = ensure_request_id()
        assert generated
        assert ensure_request_id() == generated


def test_json_formatter_redacts_credentials() -> None:
    record = logging.LogRecord("postboard.test", logging.INFO, __file__, 1, "refresh.invalid", (), None)
    record.refresh_token = "super-secret"
    record.reason = "expired_refresh"

    line = JSONFormatter().format(record)

    assert "super-secret" not in line
    assert json.loads(line)["refresh_token"] == "[redacted]"
    assert json.loads(line)["reason"] == "expired_refresh"


def test_configure_logging_writes_json_lines() -> None:
    import io

    stream = io.StringIO()
    configure_logging("INFO", stream=stream)

    logging.getLogger("postboard.test").info("auth.bootstrap", extra={"provider": "google"})

    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["message"] == "auth.bootstrap"
    assert payload["provider"] == "google"
    assert payload["request_id"] is None
