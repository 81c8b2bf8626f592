"""Google / Apple ID-token verification against the providers' JWK sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt
from jwt import PyJWKClient

from postboard.services._shared.errors import IdentityVerificationError
from postboard.services._shared.ports import IdentityVerifier, Provider, VerifiedProfile


@dataclass(frozen=True, slots=True)
class ProviderSettings:
    """Static OIDC facts for one identity provider."""

    jwks_url: str
    issuers: tuple[str, ...]
    # Apple never sends name/picture inside the ID token
    has_profile_claims: bool


PROVIDERS: dict[str, ProviderSettings] = {
    "google": ProviderSettings(
        jwks_url="https://www.googleapis.com/oauth2/v3/certs",
        issuers=("https://accounts.google.com", "accounts.google.com"),
        has_profile_claims=True,
    ),
    "apple": ProviderSettings(
        jwks_url="https://appleid.apple.com/auth/keys",
        issuers=("https://appleid.apple.com",),
        has_profile_claims=False,
    ),
}

SIGNING_ALGORITHMS = ["RS256", "ES256"]


def _str_claim(claims: dict[str, Any], name: str) -> str | None:
    value = claims.get(name)
    return value if isinstance(value, str) else None


class JWKSIdentityVerifier(IdentityVerifier):
    """
    Verify ID tokens with PyJWT and the provider's published signing keys.

    :param audiences: Expected ``aud`` per provider (OAuth client ids). A
        provider without an audience is rejected.
    :param jwk_clients: Optional pre-built key clients per provider; by
        default one cached :class:`jwt.PyJWKClient` per JWKS URL.
    """

    def __init__(
        self,
        *,
        audiences: dict[str, str | None],
        jwk_clients: dict[str, Any] | None = None,
    ) -> None:
        self._audiences = audiences
        self._jwk_clients: dict[str, Any] = dict(jwk_clients or {})

    def _client(self, provider: str) -> Any:
        client = self._jwk_clients.get(provider)
        if client is None:
            client = PyJWKClient(PROVIDERS[provider].jwks_url, cache_keys=True)
            self._jwk_clients[provider] = client
        return client

    def verify(self, provider: Provider, id_token: str) -> VerifiedProfile:
        settings = PROVIDERS.get(provider)
        if settings is None:
            raise IdentityVerificationError(f"Unsupported provider: {provider}")
        audience = self._audiences.get(provider)
        if not audience:
            raise IdentityVerificationError(f"{provider.upper()}_AUDIENCE_NOT_CONFIGURED")

        try:
            signing_key = self._client(provider).get_signing_key_from_jwt(id_token)
            claims: dict[str, Any] = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=SIGNING_ALGORITHMS,
                audience=audience,
                options={"require": ["iss", "sub", "aud", "exp"]},
            )
        except jwt.PyJWTError as exc:
            raise IdentityVerificationError(f"{provider} ID token rejected: {exc}") from exc

        if claims.get("iss") not in settings.issuers:
            raise IdentityVerificationError(f"{provider.upper()}_ISS_MISMATCH")

        return VerifiedProfile(
            provider_account_id=str(claims["sub"]),
            email=_str_claim(claims, "email"),
            email_verified=claims.get("email_verified") is True,
            name=_str_claim(claims, "name") if settings.has_profile_claims else None,
            image=_str_claim(claims, "picture") if settings.has_profile_claims else None,
        )
