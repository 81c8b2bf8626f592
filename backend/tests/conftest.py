"""Pytest fixtures building an isolated app per test.

Each test gets a fresh Flask app on an in-memory SQLite database, an
in-memory refresh store and a static identity verifier, so no network or
external service is touched.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from typing import Any

import pytest
from flask import Flask

from postboard.core import auth as auth_components
from postboard.core.config import TestingConfig
from postboard.core.extensions import db as _db
from postboard.factory import create_app
from postboard.services._shared.ports import StaticIdentityVerifier


@pytest.fixture()
def identity_verifier() -> StaticIdentityVerifier:
    """Identity verifier accepting only the ID tokens a test registers."""
    return StaticIdentityVerifier()


@pytest.fixture()
def config() -> type[TestingConfig]:
    """Configuration class used by :func:`app`; override to tweak settings."""
    return TestingConfig


@pytest.fixture()
def app(config, identity_verifier) -> Generator[Flask, None, None]:
    """Create a Flask application with a fresh schema.

    Yields
    ------
    flask.Flask
        Application with an app context pushed for the whole test.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    application = create_app(config, instance_relative_config=False)
    auth_components.init_app(application, identity_verifier=identity_verifier)
    application.logger.setLevel("WARNING")

    with application.app_context():
        _db.create_all()
        yield application
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def session(app: Flask) -> Any:
    """SQLAlchemy session of the current app context."""
    return _db.session


@pytest.fixture()
def client(app: Flask):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def components(app: Flask) -> auth_components.AuthComponents:
    """Auth collaborators registered on the app (manager, signer, verifier)."""
    return app.extensions[auth_components.EXTENSION_KEY]


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the app session ------------------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when the test uses the database."""
    from tests.factories import SQLAlchemySession

    if "app" in request.fixturenames:
        SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
