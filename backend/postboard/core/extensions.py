"""Flask extension singletons shared by the whole app."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

REDIS_EXTENSION_KEY = "postboard.redis"

# Deterministic constraint names; the migrations rely on them
NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
    session_options={"autoflush": False},
)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()


def _connect_redis(url: str) -> redis.Redis:
    client = redis.Redis.from_url(url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Redis at {url!r} did not answer PING") from exc
    return client


def init_app(app: Flask) -> None:
    """Bind the database, migrations and JWT manager to ``app``.

    A Redis client is opened only when ``REDIS_URL`` is set; it is kept on
    ``app.extensions`` so each app owns its connection pool.

    Raises
    ------
    RuntimeError
        ``REDIS_URL`` is set but the server is unreachable.
    """
    db.init_app(app)
    # models must be imported before Alembic inspects the metadata
    from postboard import models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    url = app.config.get("REDIS_URL")
    if url:
        app.extensions[REDIS_EXTENSION_KEY] = _connect_redis(url)
    else:
        app.extensions.pop(REDIS_EXTENSION_KEY, None)


def get_redis(app: Flask | None = None) -> redis.Redis:
    """Return the Redis client of ``app`` (default: the current app)."""
    target = app if app is not None else current_app
    client = target.extensions.get(REDIS_EXTENSION_KEY)
    if client is None:
        raise RuntimeError("Redis is not configured; set REDIS_URL.")
    return client
