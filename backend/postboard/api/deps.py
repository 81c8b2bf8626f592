"""Shared API helpers for request handling and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from postboard.core.auth import get_auth_components
from postboard.core.logger import ensure_request_id
from postboard.services import AuthService, ServiceContext

F = TypeVar("F", bound=Callable[..., Any])


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token; exposes ``g.user_id``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        g.user_id = str(get_jwt_identity())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _access_expires() -> timedelta | None:
    value = current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES")
    return value if isinstance(value, timedelta) else None


def get_auth_service() -> AuthService:
    """Build an :class:`AuthService` wired to the app's auth components."""

    components = get_auth_components()
    return AuthService(
        refresh_tokens=components.refresh_tokens,
        token_provider=components.token_provider,
        identity_verifier=components.identity_verifier,
        access_expires=_access_expires(),
        revoke_on_reuse=bool(current_app.config.get("REFRESH_REVOKE_ON_REUSE", False)),
        ctx=ServiceContext(actor_id=g.get("user_id"), request_id=ensure_request_id()),
    )
