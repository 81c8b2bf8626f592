from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol


class AccessTokenProvider(Protocol):
    """Port for signing short-lived access tokens (bearer JWTs).

    Reading them back is left to the ``@require_auth`` guard.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        expires_delta: timedelta | None = None,
        additional_claims: dict[str, Any] | None = None,
    ) -> str: ...


class StubTokenProvider(AccessTokenProvider):
    """Deterministic access-token provider used in unit tests."""

    def __init__(self, default_ttl: timedelta = timedelta(minutes=15)) -> None:
        self._now = datetime.now(tz=UTC)
        self._seq = 0
        self._default_ttl = default_ttl
        self.issued: dict[str, dict[str, Any]] = {}

    def create_access_token(
        self,
        *,
        identity: str,
        expires_delta: timedelta | None = None,
        additional_claims: dict[str, Any] | None = None,
    ) -> str:
        self._seq += 1
        token = f"access.{identity}.{self._seq}"
        payload: dict[str, Any] = {
            "sub": identity,
            "type": "access",
            "exp": int((self._now + (expires_delta or self._default_ttl)).timestamp()),
        }
        if additional_claims:
            payload.update(additional_claims)
        self.issued[token] = payload
        return token
