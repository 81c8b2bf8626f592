"""Refresh-token cookie contract (HttpOnly, SameSite=Lax, Path=/)."""

from __future__ import annotations

from datetime import UTC, datetime

from flask import Response, current_app, request

from postboard.services.refresh_tokens import IssueResult

DEFAULT_COOKIE_NAME = "refresh_token"


def cookie_name() -> str:
    return str(current_app.config.get("REFRESH_COOKIE_NAME") or DEFAULT_COOKIE_NAME)


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "samesite": "Lax",
        "path": "/",
        "secure": bool(current_app.config.get("REFRESH_COOKIE_SECURE", False)),
        "domain": current_app.config.get("COOKIE_DOMAIN") or None,
    }


def read_refresh_cookie() -> str | None:
    """Return the refresh token sent by the browser, if any."""
    value = request.cookies.get(cookie_name())
    return value or None


def set_refresh_cookie(response: Response, issued: IssueResult, *, now: datetime | None = None) -> None:
    """Attach ``issued.token`` with ``Max-Age`` equal to the remaining lifetime."""
    max_age = issued.max_age(now or datetime.now(UTC))
    response.set_cookie(cookie_name(), issued.token, max_age=max_age, **_cookie_options())


def clear_refresh_cookie(response: Response) -> None:
    """Expire the refresh cookie with the same attributes it was set with."""
    options = _cookie_options()
    response.delete_cookie(
        cookie_name(),
        path=options["path"],
        domain=options["domain"],
        secure=options["secure"],
        httponly=True,
        samesite="Lax",
    )
