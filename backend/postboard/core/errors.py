"""RFC 7807 ``application/problem+json`` errors for every failure path."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from postboard.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"


def _default_code(status: int) -> str:
    """Snake-case code derived from the status phrase (``405 -> method_not_allowed``)."""
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        return "error"
    return phrase.lower().replace(" ", "_").replace("-", "_")


def problem_response(
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> tuple[Response, int]:
    """
    Render a problem document and log it (warning for 4xx, error for 5xx).

    :param status: HTTP status code.
    :param code: Stable machine-readable code (``invalid_refresh``, ...).
    :param message: Client-safe detail.
    :param details: Optional structured details.
    :returns: ``(response, status)`` ready to return from a handler.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        problem["details"] = details

    if status >= 500:
        log.error("problem: code=%s status=%s", code, status, exc_info=True)
    else:
        log.warning("problem: code=%s status=%s detail=%s", code, status, message)

    response = jsonify(problem)
    response.mimetype = PROBLEM_MIMETYPE
    return response, status


class APIError(Exception):
    """
    Error raised by view code and rendered as a problem document.

    Parameters
    ----------
    message : str
        Client-safe description.
    status_code : int, optional
        HTTP status, ``400`` by default.
    code : str, optional
        Machine-readable identifier, ``"bad_request"`` by default.
    details : dict[str, Any] | None, optional
        Structured payload added under ``details``.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=HTTPStatus.NOT_FOUND, code="not_found")


class Conflict(APIError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=HTTPStatus.CONFLICT, code="conflict")


class Unauthorized(APIError):
    """401; ``code`` tells the client why it must sign in again."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


def _register_jwt_callbacks() -> None:
    """Render Flask-JWT-Extended failures (bearer access token) as problems."""
    from postboard.core.extensions import jwt

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return problem_response(HTTPStatus.UNAUTHORIZED, "missing_token", reason)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return problem_response(HTTPStatus.UNAUTHORIZED, "invalid_token", reason)

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict, jwt_payload: dict):
        return problem_response(HTTPStatus.UNAUTHORIZED, "token_expired", "Access token has expired.")


def init_app(app: Flask) -> None:
    """
    Attach the problem+json handlers to ``app``.

    Notes
    -----
    - Database errors never leak driver messages to clients.
    - Unexpected exceptions are logged with traceback and answered with 500.
    """

    _register_jwt_callbacks()

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return problem_response(err.status_code, err.code, err.message, err.details or None)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        return problem_response(status, _default_code(status), message)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return problem_response(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            {"errors": err.messages},
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        log.error("integrity error", exc_info=err)
        return problem_response(HTTPStatus.CONFLICT, "conflict", "Resource conflict")

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        return problem_response(
            HTTPStatus.SERVICE_UNAVAILABLE,
            "service_unavailable",
            "Service temporarily unavailable",
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        return problem_response(
            HTTPStatus.INTERNAL_SERVER_ERROR,
            "internal_server_error",
            "Unexpected error",
        )
