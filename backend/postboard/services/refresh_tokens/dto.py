# postboard/services/refresh_tokens/dto.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class IssueResult:
    """
    Freshly issued refresh token.

    :param token: Opaque URL-safe secret. Shown once; only its digest is stored.
    :type token: str
    :param id: Internal record id (``jti``).
    :type id: str
    :param subject_id: Authenticated application user id.
    :type subject_id: str
    :param expires_at: Absolute expiry (UTC).
    :type expires_at: datetime
    """

    token: str
    id: str
    subject_id: str
    expires_at: datetime

    def max_age(self, now: datetime) -> int:
        """Whole seconds until expiry, never negative (cookie ``Max-Age``)."""
        return max(0, math.ceil((self.expires_at - now).total_seconds()))


@dataclass(frozen=True, slots=True)
class VerifyResult:
    """
    Current record matched by a presented token.

    :param id: Internal record id.
    :param subject_id: Owner of the token.
    :param expires_at: Absolute expiry (UTC).
    """

    id: str
    subject_id: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RotateResult:
    """
    Outcome of :meth:`RefreshTokenManager.rotate`.

    :param next: Successor token to hand back to the client.
    :param reused: The presented token had already been rotated (replay).
    :param was_revoked: The presented token was already revoked before this
        rotation (always true on replay; also after logout).
    :param was_expired: The presented token was past its expiry.
    """

    next: IssueResult
    reused: bool
    was_revoked: bool = False
    was_expired: bool = False
