# postboard/services/refresh_tokens/manager.py
from __future__ import annotations

import hashlib
import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from postboard.core.config import DEFAULT_REFRESH_TTL
from postboard.services._shared.errors import (
    RefreshTokenExpired,
    RefreshTokenNotFound,
    RefreshTokenRevoked,
)
from postboard.services._shared.ports.refresh_token_store import (
    RefreshRecord,
    RefreshTokenStore,
)
from postboard.services.refresh_tokens.dto import IssueResult, RotateResult, VerifyResult

log = logging.getLogger(__name__)

# 32 random bytes -> 43 URL-safe characters
TOKEN_BYTES = 32


def utc_now() -> datetime:
    return datetime.now(UTC)


class RefreshTokenManager:
    """
    Lifecycle of opaque refresh tokens: issue, verify, rotate, revoke.

    Tokens are random secrets; the store only ever sees their SHA-256 digest.
    Rotation is single-use: the presented record is revoked and a successor
    issued, and presenting an already-rotated token again still succeeds but
    reports ``reused=True`` so the caller can treat it as a theft signal.

    :param store: Backend holding the records (memory, Redis or database).
    :param ttl: Lifetime of each issued token (default 30 days).
    :param clock: Returns the current aware UTC instant.
    """

    def __init__(
        self,
        store: RefreshTokenStore,
        *,
        ttl: timedelta = DEFAULT_REFRESH_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.ttl = ttl
        self.clock = clock

    # ------------------------------------------------------------------ #
    # Primitives
    # ------------------------------------------------------------------ #

    @staticmethod
    def digest(token: str) -> str:
        """Deterministic SHA-256 hex digest of a raw token."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    @staticmethod
    def generate_token() -> str:
        return secrets.token_urlsafe(TOKEN_BYTES)

    @staticmethod
    def new_id() -> str:
        return str(uuid4())

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def issue(self, subject_id: str) -> IssueResult:
        """
        Issue a new refresh token for ``subject_id``.

        A subject may hold any number of valid tokens (one per device).

        :raises ValueError: If ``subject_id`` is empty.
        """
        if not subject_id:
            raise ValueError("subject_id must be a non-empty identifier.")

        token = self.generate_token()
        now = self.clock()
        record = RefreshRecord(
            id=self.new_id(),
            subject_id=subject_id,
            token_digest=self.digest(token),
            issued_at=now,
            expires_at=now + self.ttl,
        )
        self.store.add(record)
        log.debug("refresh.issued", extra={"subject_id": subject_id, "record_id": record.id})
        return IssueResult(
            token=token,
            id=record.id,
            subject_id=subject_id,
            expires_at=record.expires_at,
        )

    def verify(self, token: str) -> VerifyResult:
        """
        Return the current record for ``token``. No side effects.

        :raises RefreshTokenNotFound: No record matches the digest.
        :raises RefreshTokenRevoked: The record was revoked or rotated.
        :raises RefreshTokenExpired: ``now >= expires_at``.
        """
        record = self.store.find_by_digest(self.digest(token))
        if record is None:
            raise RefreshTokenNotFound()
        if record.revoked:
            raise RefreshTokenRevoked()
        if record.is_expired(self.clock()):
            raise RefreshTokenExpired()
        return VerifyResult(
            id=record.id,
            subject_id=record.subject_id,
            expires_at=record.expires_at,
        )

    def rotate(self, old_token: str) -> RotateResult:
        """
        Consume ``old_token`` and issue its successor.

        The presented record is revoked whatever its state (expired and
        revoked tokens included) and ``rotated_to`` is only recorded on the
        first rotation. The prior state of the consumed record is reported
        back (``was_revoked``, ``was_expired``) for the caller to act on.
        Concurrent rotations of one token are serialized by
        the store, so at most one caller sees ``reused=False``.

        :raises RefreshTokenNotFound: No record matches the digest.
        """
        token = self.generate_token()
        now = self.clock()
        outcome = self.store.rotate(
            token_digest=self.digest(old_token),
            new_id=self.new_id(),
            new_token_digest=self.digest(token),
            issued_at=now,
            expires_at=now + self.ttl,
        )
        if outcome is None:
            raise RefreshTokenNotFound()

        successor = outcome.successor
        log.debug(
            "refresh.rotated",
            extra={"subject_id": successor.subject_id, "record_id": outcome.previous.id},
        )
        return RotateResult(
            next=IssueResult(
                token=token,
                id=successor.id,
                subject_id=successor.subject_id,
                expires_at=successor.expires_at,
            ),
            reused=outcome.reused,
            was_revoked=outcome.previously_revoked,
            was_expired=outcome.previous.is_expired(now),
        )

    def revoke_by_jti(self, record_id: str) -> None:
        """Revoke a record by id; unknown ids are ignored."""
        self.store.mark_revoked(record_id)

    def revoke_subject(self, subject_id: str) -> int:
        """Revoke every record of ``subject_id``. :returns: records affected."""
        return self.store.revoke_all_for_subject(subject_id)
