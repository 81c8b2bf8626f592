"""Unit tests for refresh-store selection and auth component wiring."""

from __future__ import annotations

from datetime import timedelta

import fakeredis
import pytest

from postboard.core import auth as auth_components
from postboard.core.extensions import REDIS_EXTENSION_KEY
from postboard.infra.redis import RedisRefreshTokenStore
from postboard.infra.sql import SQLAlchemyRefreshTokenStore
from postboard.services._shared.ports import InMemoryRefreshTokenStore


@pytest.mark.parametrize(
    ("backend", "expected"),
    [("memory", InMemoryRefreshTokenStore), ("database", SQLAlchemyRefreshTokenStore)],
)
def test_build_refresh_store(app, backend, expected):
    app.config["REFRESH_STORE_BACKEND"] = backend
    assert isinstance(auth_components.build_refresh_store(app), expected)


def test_build_refresh_store_redis_uses_shared_client(app, monkeypatch):
    client = fakeredis.FakeRedis()
    monkeypatch.setitem(app.extensions, REDIS_EXTENSION_KEY, client)
    app.config["REFRESH_STORE_BACKEND"] = "redis"

    store = auth_components.build_refresh_store(app)

    assert isinstance(store, RedisRefreshTokenStore)
    assert store.r is client


def test_redis_backend_requires_redis_url(app):
    app.config["REFRESH_STORE_BACKEND"] = "redis"
    with pytest.raises(RuntimeError, match="REDIS_URL"):
        auth_components.build_refresh_store(app)


def test_unknown_backend_is_rejected(app):
    app.config["REFRESH_STORE_BACKEND"] = "memcached"
    with pytest.raises(RuntimeError):
        auth_components.build_refresh_store(app)


def test_refresh_ttl_accepts_duration_strings(app):
    app.config["REFRESH_TOKEN_TTL"] = "7d"
    assert auth_components.refresh_ttl(app) == timedelta(days=7)

    app.config["REFRESH_TOKEN_TTL"] = "bogus"
    assert auth_components.refresh_ttl(app) == timedelta(days=30)


def test_components_are_registered_on_the_app(app, components, identity_verifier):
    assert auth_components.get_auth_components() is components
    assert components.identity_verifier is identity_verifier
    assert components.refresh_tokens.ttl == timedelta(days=30)
