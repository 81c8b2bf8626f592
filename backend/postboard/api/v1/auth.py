"""Session endpoints: bootstrap, refresh, logout and me."""

from __future__ import annotations

from flask import Blueprint, current_app, g, request

from postboard.api.cookies import clear_refresh_cookie, read_refresh_cookie, set_refresh_cookie
from postboard.api.deps import get_auth_service, json_response, require_auth, timing
from postboard.core.cors import origin_allowed
from postboard.core.errors import Unauthorized
from postboard.schemas import BootstrapSchema, SessionResponseSchema, SessionUserSchema
from postboard.services import BootstrapIn, LogoutIn, RefreshIn, SessionOut
from postboard.services._shared.errors import ServiceError

bp = Blueprint("auth", __name__)

bootstrap_schema = BootstrapSchema()
session_schema = SessionResponseSchema()
user_schema = SessionUserSchema()


def _session_response(session: SessionOut):
    body = {"data": session_schema.dump({"user": session.user, "token": session.access_token})}
    response = json_response(body)
    set_refresh_cookie(response, session.refresh)
    return response


@bp.post("/bootstrap")
@timing
def bootstrap():
    """Exchange a Google/Apple ID token for an access token and refresh cookie."""

    data = bootstrap_schema.load(request.get_json(silent=True) or {})
    service = get_auth_service()
    try:
        session = service.bootstrap(BootstrapIn(provider=data["provider"], id_token=data["id_token"]))
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return _session_response(session)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh cookie and return a fresh access token."""

    if not origin_allowed(request.headers.get("Origin"), current_app.config.get("CORS_ORIGINS")):
        raise Unauthorized("Origin is not allowed.", code="csrf_origin")

    token = read_refresh_cookie()
    if token is None:
        raise Unauthorized("Missing refresh token.", code="no_refresh")

    service = get_auth_service()
    try:
        session = service.refresh(RefreshIn(refresh_token=token))
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return _session_response(session)


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented refresh token (best effort) and clear the cookie."""

    payload = request.get_json(silent=True) or {}
    all_sessions = isinstance(payload, dict) and payload.get("all_sessions") is True
    service = get_auth_service()
    service.logout(LogoutIn(refresh_token=read_refresh_cookie(), all_sessions=all_sessions))

    response = current_app.response_class(status=204)
    clear_refresh_cookie(response)
    return response


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated user profile."""

    service = get_auth_service()
    try:
        user = service.whoami(g.user_id)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return json_response({"data": user_schema.dump(user)})
