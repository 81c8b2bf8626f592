"""Build and expose the authentication collaborators for the running app."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import cast

from flask import Flask, current_app

from postboard.core.config import DEFAULT_REFRESH_TTL
from postboard.core.durations import parse_duration
from postboard.services._shared.ports import (
    AccessTokenProvider,
    IdentityVerifier,
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
)
from postboard.services.refresh_tokens import RefreshTokenManager

EXTENSION_KEY = "postboard.auth"
STORE_BACKENDS = ("memory", "redis", "database")


@dataclass(slots=True)
class AuthComponents:
    """Per-app singletons shared by every request."""

    refresh_tokens: RefreshTokenManager
    token_provider: AccessTokenProvider
    identity_verifier: IdentityVerifier


def refresh_ttl(app: Flask) -> timedelta:
    """Return ``REFRESH_TOKEN_TTL`` as a timedelta (instance configs may use ``"30d"`` strings)."""
    value = app.config.get("REFRESH_TOKEN_TTL", DEFAULT_REFRESH_TTL)
    if isinstance(value, timedelta):
        return value
    return parse_duration(str(value), DEFAULT_REFRESH_TTL)


def build_refresh_store(app: Flask) -> RefreshTokenStore:
    """Instantiate the store selected by ``REFRESH_STORE_BACKEND``.

    Raises
    ------
    RuntimeError
        For an unknown backend name.
    """
    backend = str(app.config.get("REFRESH_STORE_BACKEND", "memory")).lower()
    if backend == "memory":
        return InMemoryRefreshTokenStore()
    if backend == "redis":
        from postboard.core.extensions import get_redis
        from postboard.infra.redis import RedisRefreshTokenStore

        return RedisRefreshTokenStore(r=get_redis(app))
    if backend == "database":
        from postboard.infra.sql import SQLAlchemyRefreshTokenStore

        return SQLAlchemyRefreshTokenStore()
    raise RuntimeError(
        f"Unknown REFRESH_STORE_BACKEND {backend!r}; expected one of {STORE_BACKENDS}."
    )


def init_app(
    app: Flask,
    *,
    store: RefreshTokenStore | None = None,
    token_provider: AccessTokenProvider | None = None,
    identity_verifier: IdentityVerifier | None = None,
) -> AuthComponents:
    """Register the auth components on ``app.extensions``.

    Any collaborator may be injected (tests); the rest is built from config.
    Must run after :func:`postboard.core.extensions.init_app`.
    """
    from postboard.infra.jwt import JWTTokenProvider
    from postboard.infra.oidc import JWKSIdentityVerifier

    components = AuthComponents(
        refresh_tokens=RefreshTokenManager(
            store or build_refresh_store(app),
            ttl=refresh_ttl(app),
        ),
        token_provider=token_provider or JWTTokenProvider(),
        identity_verifier=identity_verifier
        or JWKSIdentityVerifier(
            audiences={
                "google": app.config.get("OIDC_GOOGLE_CLIENT_ID"),
                "apple": app.config.get("OIDC_APPLE_CLIENT_ID"),
            }
        ),
    )
    app.extensions[EXTENSION_KEY] = components
    return components


def get_auth_components() -> AuthComponents:
    """Return the components of the current app."""
    components = current_app.extensions.get(EXTENSION_KEY)
    if components is None:
        raise RuntimeError("Auth components are not initialized. Call init_app() first.")
    return cast(AuthComponents, components)
