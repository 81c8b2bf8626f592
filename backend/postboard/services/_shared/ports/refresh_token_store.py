from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RefreshRecord:
    """
    Server-side state of one issued refresh token.

    :ivar id: Internal identifier (``jti``), unique and never reused.
    :ivar subject_id: Application user the token authenticates.
    :ivar token_digest: SHA-256 hex digest of the opaque token; the raw
        secret is never stored.
    :ivar issued_at: Issuance instant (UTC).
    :ivar expires_at: Absolute expiry instant (UTC).
    :ivar rotated_to: Successor ``id``; written once, on first rotation.
    :ivar revoked: Monotonic ``False`` -> ``True`` flag.
    """

    id: str
    subject_id: str
    token_digest: str
    issued_at: datetime
    expires_at: datetime
    rotated_to: str | None = None
    revoked: bool = False

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True, slots=True)
class RotationOutcome:
    """
    Result of an atomic rotation.

    :ivar previous: Presented record as stored after the rotation (revoked).
    :ivar successor: Newly stored record for the same subject.
    :ivar reused: ``True`` when ``previous`` had already been rotated before
        this call, i.e. the token was replayed.
    :ivar previously_revoked: ``previous`` was already revoked before this
        call (rotation, logout or subject-wide revoke).
    """

    previous: RefreshRecord
    successor: RefreshRecord
    reused: bool
    previously_revoked: bool = False


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh records, indexed by id and by token digest.

    Every method is atomic with respect to the records it touches, and
    :meth:`rotate` is a single conditional update: no reader may observe a
    presented record revoked without its rotation applied.
    """

    def add(self, record: RefreshRecord) -> None:
        """Persist a brand-new record (both indexes)."""

    def get(self, record_id: str) -> RefreshRecord | None:
        """Fetch a record by internal id."""

    def find_by_digest(self, token_digest: str) -> RefreshRecord | None:
        """Fetch a record by token digest."""

    def rotate(
        self,
        *,
        token_digest: str,
        new_id: str,
        new_token_digest: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> RotationOutcome | None:
        """
        Atomically consume the record matching ``token_digest``.

        Marks it revoked, stores a successor for the same subject and sets
        ``rotated_to`` only when it was still empty.

        :returns: The outcome, or ``None`` when no record matches.
        """

    def mark_revoked(self, record_id: str) -> bool:
        """Mark a single record revoked. :returns: True if it existed."""

    def revoke_all_for_subject(self, subject_id: str) -> int:
        """Revoke every record of ``subject_id``. :returns: records affected."""

    def list_subject_records(self, subject_id: str) -> Iterable[RefreshRecord]:
        """List the records issued to ``subject_id`` (any state)."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    Process-local store guarded by a single lock.

    .. note::
       State lives in this process only; run one instance per deployment or
       switch to the Redis/database backend.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, RefreshRecord] = {}
        self._by_digest: dict[str, str] = {}
        self._by_subject: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def _put(self, record: RefreshRecord) -> None:
        self._by_id[record.id] = record
        self._by_digest[record.token_digest] = record.id
        self._by_subject.setdefault(record.subject_id, set()).add(record.id)

    def add(self, record: RefreshRecord) -> None:
        with self._lock:
            if record.id in self._by_id or record.token_digest in self._by_digest:
                raise ValueError("Refresh record id or digest already stored.")
            self._put(record)

    def get(self, record_id: str) -> RefreshRecord | None:
        with self._lock:
            return self._by_id.get(record_id)

    def find_by_digest(self, token_digest: str) -> RefreshRecord | None:
        with self._lock:
            record_id = self._by_digest.get(token_digest)
            return self._by_id.get(record_id) if record_id else None

    def rotate(
        self,
        *,
        token_digest: str,
        new_id: str,
        new_token_digest: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> RotationOutcome | None:
        with self._lock:
            record_id = self._by_digest.get(token_digest)
            old = self._by_id.get(record_id) if record_id else None
            if old is None:
                return None

            reused = old.rotated_to is not None
            successor = RefreshRecord(
                id=new_id,
                subject_id=old.subject_id,
                token_digest=new_token_digest,
                issued_at=issued_at,
                expires_at=expires_at,
            )
            previous = replace(
                old,
                revoked=True,
                rotated_to=old.rotated_to if reused else new_id,
            )
            self._put(successor)
            self._by_id[old.id] = previous
            return RotationOutcome(
                previous=previous,
                successor=successor,
                reused=reused,
                previously_revoked=old.revoked,
            )

    def mark_revoked(self, record_id: str) -> bool:
        with self._lock:
            record = self._by_id.get(record_id)
            if record is None:
                return False
            if not record.revoked:
                self._by_id[record_id] = replace(record, revoked=True)
            return True

    def revoke_all_for_subject(self, subject_id: str) -> int:
        with self._lock:
            ids = list(self._by_subject.get(subject_id, set()))
            for record_id in ids:
                record = self._by_id[record_id]
                if not record.revoked:
                    self._by_id[record_id] = replace(record, revoked=True)
            return len(ids)

    def list_subject_records(self, subject_id: str) -> list[RefreshRecord]:
        with self._lock:
            return [self._by_id[j] for j in sorted(self._by_subject.get(subject_id, set()))]
