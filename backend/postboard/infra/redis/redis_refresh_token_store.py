# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

import redis  # type: ignore[import-untyped]

from postboard.services._shared.ports import RefreshRecord, RefreshTokenStore, RotationOutcome


def _s(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh record store shared by every API instance.

    Layout
    ------
    - ``rt:{id}`` hash: ``subject_id``, ``token_digest``, ``issued_at``,
      ``expires_at`` (ISO-8601), ``rotated_to`` (empty until rotated),
      ``revoked`` (``"0"``/``"1"``).
    - ``rt:d:{digest}`` string: record id.
    - ``rt:s:{subject_id}`` set: record ids of the subject.

    Keys expire ``retention`` after the record itself so that expired and
    replayed tokens are still reported as such for a while before Redis
    reclaims them.

    :param r: A Redis client (already connected).
    :param retention: Grace period kept after ``expires_at``.
    """

    r: redis.Redis
    retention: timedelta = timedelta(days=1)

    # -------------------- helpers --------------------

    @staticmethod
    def _k(record_id: str) -> str:
        return f"rt:{record_id}"

    @staticmethod
    def _kd(token_digest: str) -> str:
        return f"rt:d:{token_digest}"

    @staticmethod
    def _ks(subject_id: str) -> str:
        return f"rt:s:{subject_id}"

    def _expire_at(self, record: RefreshRecord) -> int:
        return int((record.expires_at + self.retention).timestamp())

    def _queue_put(self, pipe: redis.client.Pipeline, record: RefreshRecord) -> None:
        key = self._k(record.id)
        digest_key = self._kd(record.token_digest)
        pipe.hset(
            key,
            mapping={
                "subject_id": record.subject_id,
                "token_digest": record.token_digest,
                "issued_at": record.issued_at.isoformat(),
                "expires_at": record.expires_at.isoformat(),
                "rotated_to": record.rotated_to or "",
                "revoked": "1" if record.revoked else "0",
            },
        )
        pipe.set(digest_key, record.id)
        pipe.expireat(key, self._expire_at(record))
        pipe.expireat(digest_key, self._expire_at(record))
        pipe.sadd(self._ks(record.subject_id), record.id)

    @staticmethod
    def _record(record_id: str, h: dict[bytes, bytes]) -> RefreshRecord:
        return RefreshRecord(
            id=record_id,
            subject_id=_s(h.get(b"subject_id")),
            token_digest=_s(h.get(b"token_digest")),
            issued_at=datetime.fromisoformat(_s(h.get(b"issued_at"))),
            expires_at=datetime.fromisoformat(_s(h.get(b"expires_at"))),
            rotated_to=_s(h.get(b"rotated_to")) or None,
            revoked=_s(h.get(b"revoked"), "0") == "1",
        )

    # -------------------- API ------------------------

    def add(self, record: RefreshRecord) -> None:
        """Insert both index entries and the record hash in one transaction."""
        with self.r.pipeline(transaction=True) as pipe:
            self._queue_put(pipe, record)
            pipe.execute()

    def get(self, record_id: str) -> RefreshRecord | None:
        h = self.r.hgetall(self._k(record_id))
        if not h:
            return None
        return self._record(record_id, h)

    def find_by_digest(self, token_digest: str) -> RefreshRecord | None:
        record_id = self.r.get(self._kd(token_digest))
        if record_id is None:
            return None
        return self.get(_s(record_id))

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
        Atomically consume the record behind ``token_digest``.

        Uses WATCH/MULTI/EXEC (optimistic locking) on the digest and record
        keys: a concurrent rotation of the same token aborts this EXEC and the
        loop re-reads ``rotated_to``, so the loser observes ``reused=True``.
        """
        k_digest = self._kd(token_digest)

        with self.r.pipeline() as p:
            while True:
                try:
                    p.watch(k_digest)
                    raw_id = p.get(k_digest)
                    if raw_id is None:
                        p.unwatch()
                        return None
                    record_id = _s(raw_id)
                    k_old = self._k(record_id)
                    p.watch(k_old)
                    h = p.hgetall(k_old)
                    if not h:
                        p.unwatch()
                        return None

                    old = self._record(record_id, h)
                    reused = old.rotated_to is not None
                    successor = RefreshRecord(
                        id=new_id,
                        subject_id=old.subject_id,
                        token_digest=new_token_digest,
                        issued_at=issued_at,
                        expires_at=expires_at,
                    )

                    p.multi()
                    p.hset(k_old, "revoked", "1")
                    if not reused:
                        p.hset(k_old, "rotated_to", new_id)
                    self._queue_put(p, successor)
                    p.execute()
                    break
                except redis.WatchError:
                    # Concurrent modification detected; retry with fresh state
                    continue

        previous = replace(old, revoked=True, rotated_to=old.rotated_to or new_id)
        return RotationOutcome(
            previous=previous,
            successor=successor,
            reused=reused,
            previously_revoked=old.revoked,
        )

    def mark_revoked(self, record_id: str) -> bool:
        key = self._k(record_id)
        with self.r.pipeline() as p:
            while True:
                try:
                    p.watch(key)
                    if not p.exists(key):
                        # Never create a partial hash for an unknown/expired id
                        p.unwatch()
                        return False
                    p.multi()
                    p.hset(key, "revoked", "1")
                    p.execute()
                    return True
                except redis.WatchError:
                    continue

    def revoke_all_for_subject(self, subject_id: str) -> int:
        record_ids = [_s(member) for member in self.r.smembers(self._ks(subject_id))]
        return sum(1 for record_id in record_ids if self.mark_revoked(record_id))

    def list_subject_records(self, subject_id: str) -> Iterable[RefreshRecord]:
        key_s = self._ks(subject_id)
        members = sorted(_s(j) for j in self.r.smembers(key_s))

        stale: list[str] = []
        for record_id in members:
            record = self.get(record_id)
            if record:
                yield record
            else:
                # Hash reclaimed by Redis -> drop it from the subject index
                stale.append(record_id)

        if stale:
            self.r.srem(key_s, *stale)
