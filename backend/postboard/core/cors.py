"""CORS configuration helper for API resources."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def allowed_origins(raw: str | None) -> list[str]:
    """Split a comma-separated ``CORS_ORIGINS`` value into clean origins."""
    return [o.strip() for o in (raw or "").split(",") if o.strip()]


def origin_allowed(origin: str | None, raw_origins: str | None) -> bool:
    """Return ``True`` when ``origin`` passes the configured allow-list.

    A missing ``Origin`` header and an empty or ``"*"`` list both allow the
    request.
    """
    if not origin:
        return True
    origins = allowed_origins(raw_origins)
    if not origins or origins == ["*"]:
        return True
    return origin in origins


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints based on application config.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. When ``CORS_ORIGINS`` is blank or ``"*"`` the policy allows
        any origin but disables credential support, which also keeps the
        refresh cookie from being sent cross-site.
    """
    origins = allowed_origins(app.config.get("CORS_ORIGINS", ""))
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
