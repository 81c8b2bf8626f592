"""Concrete adapters (Redis, SQLAlchemy, Flask-JWT-Extended, JWKS) for the service ports."""
