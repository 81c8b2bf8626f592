"""
postboard.services._shared.ports
================================

*Ports* (hexagonal interfaces) for the authentication infrastructure.

Modules
-------
- :mod:`refresh_token_store`:
    :class:`~.RefreshTokenStore`, :class:`~.RefreshRecord` and
    :class:`~.RotationOutcome`: digest-indexed refresh records with atomic
    rotation, plus the process-local :class:`~.InMemoryRefreshTokenStore`.

- :mod:`token_provider`:
    :class:`~.AccessTokenProvider`: signing and reading access JWTs.

- :mod:`identity_verifier`:
    :class:`~.IdentityVerifier`: Google/Apple ID-token verification.

Concrete adapters (Redis, SQLAlchemy, Flask-JWT-Extended, JWKS) live under
``postboard.infra``.
"""

from __future__ import annotations

from .identity_verifier import (
    SUPPORTED_PROVIDERS,
    IdentityVerifier,
    Provider,
    StaticIdentityVerifier,
    VerifiedProfile,
)
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshRecord,
    RefreshTokenStore,
    RotationOutcome,
)
from .token_provider import AccessTokenProvider, StubTokenProvider

__all__ = [
    "AccessTokenProvider",
    "StubTokenProvider",
    "RefreshTokenStore",
    "RefreshRecord",
    "RotationOutcome",
    "InMemoryRefreshTokenStore",
    "IdentityVerifier",
    "StaticIdentityVerifier",
    "VerifiedProfile",
    "Provider",
    "SUPPORTED_PROVIDERS",
]
