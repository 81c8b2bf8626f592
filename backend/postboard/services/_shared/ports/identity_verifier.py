from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from postboard.services._shared.errors import IdentityVerificationError

Provider = Literal["google", "apple"]
SUPPORTED_PROVIDERS: tuple[Provider, ...] = ("google", "apple")


@dataclass(frozen=True, slots=True)
class VerifiedProfile:
    """
    Profile extracted from a verified external identity token.

    :ivar provider_account_id: Provider ``sub`` claim.
    :ivar email: Email claim, when present.
    :ivar email_verified: Provider asserts the email is verified.
    :ivar name: Display name (Google only).
    :ivar image: Avatar URL (Google only).
    """

    provider_account_id: str
    email: str | None = None
    email_verified: bool = False
    name: str | None = None
    image: str | None = None


class IdentityVerifier(Protocol):
    """Port verifying Google/Apple ID tokens into a :class:`VerifiedProfile`."""

    def verify(self, provider: Provider, id_token: str) -> VerifiedProfile:
        """
        :raises IdentityVerificationError: Signature, audience or issuer invalid.
        """
        ...


class StaticIdentityVerifier(IdentityVerifier):
    """Verifier backed by a fixed ``(provider, id_token) -> profile`` table (tests)."""

    def __init__(self, profiles: dict[tuple[str, str], VerifiedProfile] | None = None) -> None:
        self._profiles = dict(profiles or {})

    def register(self, provider: Provider, id_token: str, profile: VerifiedProfile) -> None:
        self._profiles[(provider, id_token)] = profile

    def verify(self, provider: Provider, id_token: str) -> VerifiedProfile:
        try:
            return self._profiles[(provider, id_token)]
        except KeyError:
            raise IdentityVerificationError(f"Unknown {provider} identity token.") from None
