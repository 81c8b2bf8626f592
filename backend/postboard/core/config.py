"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

from postboard.core.durations import parse_duration

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

DEFAULT_ACCESS_TTL: Final = timedelta(minutes=15)
DEFAULT_REFRESH_TTL: Final = timedelta(days=30)

# Loads .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_first(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty environment variable among ``names``."""
    for name in names:
        val = os.getenv(name)
        if val:
            return val
    return default


def is_production_env() -> bool:
    """Return ``True`` when ``APP_ENV`` designates a production deployment."""
    return os.getenv(ENV_VAR, "").strip().lower() in {"production", "prod"}


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Symmetric key used by ``flask-jwt-extended`` to sign access tokens.
        ``ACCESS_TOKEN_SECRET`` and ``AUTH_SECRET`` are accepted as aliases.
    JWT_ACCESS_TOKEN_EXPIRES: datetime.timedelta
        Access-token lifetime parsed from ``ACCESS_TOKEN_TTL`` (default 15m).
    REFRESH_TOKEN_TTL: datetime.timedelta
        Refresh-token lifetime parsed from ``REFRESH_TOKEN_TTL`` (default 30d,
        malformed values fall back to 30d).
    REFRESH_COOKIE_NAME: str
        Cookie carrying the opaque refresh token.
    REFRESH_COOKIE_SECURE: bool
        Adds the ``Secure`` attribute; on by default in production.
    COOKIE_DOMAIN: str | None
        Optional ``Domain`` attribute for the refresh cookie.
    REFRESH_STORE_BACKEND: str
        ``memory`` (single process), ``redis`` or ``database``.
    REFRESH_REVOKE_ON_REUSE: bool
        When ``True`` a replayed refresh token revokes every session of the
        subject and the refresh call is rejected.
    REDIS_URL: str | None
        Redis connection string; required by the ``redis`` store backend.
    OIDC_GOOGLE_CLIENT_ID / OIDC_APPLE_CLIENT_ID: str | None
        Expected audiences for external identity tokens.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS and for the
        refresh endpoint ``Origin`` check.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = env_first(
        "JWT_SECRET_KEY", "ACCESS_TOKEN_SECRET", "AUTH_SECRET", default="changeme-dev-secret"
    )
    JWT_ALGORITHM = "HS256"
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ACCESS_TOKEN_EXPIRES = parse_duration(os.getenv("ACCESS_TOKEN_TTL"), DEFAULT_ACCESS_TTL)

    # Refresh tokens
    REFRESH_TOKEN_TTL = parse_duration(os.getenv("REFRESH_TOKEN_TTL"), DEFAULT_REFRESH_TTL)
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh_token")
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", is_production_env())
    COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN") or None
    REFRESH_STORE_BACKEND = os.getenv("REFRESH_STORE_BACKEND", "memory").strip().lower()
    REFRESH_REVOKE_ON_REUSE = env_bool("REFRESH_REVOKE_ON_REUSE", False)
    REDIS_URL = os.getenv("REDIS_URL") or None

    # External identity providers
    OIDC_GOOGLE_CLIENT_ID = env_first("OIDC_GOOGLE_CLIENT_ID", "AUTH_GOOGLE_ID")
    OIDC_APPLE_CLIENT_ID = env_first("OIDC_APPLE_CLIENT_ID", "AUTH_APPLE_ID")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps the refresh store in memory and cookies non-secure.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    JWT_SECRET_KEY = "testing-secret-key-with-enough-length"
    REFRESH_STORE_BACKEND = "memory"
    REFRESH_COOKIE_SECURE = False
    REFRESH_REVOKE_ON_REUSE = False
    REDIS_URL = None
    CORS_ORIGINS = "http://localhost:3000"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled, forces secure refresh cookies, and
    relies on WSGI-level log configuration for noise control.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REFRESH_COOKIE_SECURE = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "prod": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
