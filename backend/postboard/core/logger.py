"""JSON logging with request correlation ids and secret redaction."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any
from uuid import uuid4

from flask import Flask, Response, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# ``extra=`` keys copied to the top level of the JSON line
PROMOTED_FIELDS = ("endpoint", "elapsed_ms", "subject_id", "record_id", "reason", "provider")

# Credentials that must never reach a log sink, whatever the caller passes
SENSITIVE_FIELDS = frozenset({"token", "refresh_token", "id_token", "access_token", "authorization"})
REDACTED = "[redacted]"


class JSONFormatter(logging.Formatter):
    """One JSON object per line, timestamped with the record's creation time."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for key in PROMOTED_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        for key in SENSITIVE_FIELDS:
            if hasattr(record, key):
                payload[key] = REDACTED
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on records; ``None`` outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """Return the request's correlation id, reading headers on first use.

    Outside a request a throwaway id is returned.
    """

    if not has_request_context():
        return str(uuid4())
    request_id = g.get("request_id")
    if request_id is None:
        request_id = next(
            (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)),
            str(uuid4()),
        )
        g.request_id = request_id
    return str(request_id)


def configure_logging(level: str | int = "INFO", *, stream: IO[str] | None = None) -> None:
    """Route the root logger to a single JSON handler on ``stream`` (stdout)."""

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


def init_app(app: Flask) -> None:
    """Seed request ids per request and echo them back as a response header."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response: Response) -> Response:
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["configure_logging", "init_app", "ensure_request_id", "JSONFormatter", "RequestIdFilter"]
