# postboard/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from postboard.services._shared.ports import AccessTokenProvider


@dataclass(slots=True)
class JWTTokenProvider(AccessTokenProvider):
    """
    Access-token adapter for Flask-JWT-Extended.

    Tokens are HS256-signed with ``JWT_SECRET_KEY``; ``sub`` is the
    application user id and the lifetime defaults to
    ``JWT_ACCESS_TOKEN_EXPIRES``. Incoming tokens are checked by
    ``verify_jwt_in_request`` in :func:`postboard.api.deps.require_auth`.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        expires_delta: timedelta | None = None,
        additional_claims: dict[str, Any] | None = None,
    ) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        return cast(
            str,
            _create_access(
                identity=identity,
                additional_claims=additional_claims,
                expires_delta=expires_delta,
            ),
        )
