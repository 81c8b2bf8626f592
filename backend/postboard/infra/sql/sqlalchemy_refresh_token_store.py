from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from postboard.models.refresh_token import RefreshToken
from postboard.services._shared.ports import RefreshRecord, RefreshTokenStore, RotationOutcome


def _aware(dt: datetime) -> datetime:
    # SQLite drops tzinfo on the way back; values are always written as UTC
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def _to_record(row: RefreshToken) -> RefreshRecord:
    return RefreshRecord(
        id=row.id,
        subject_id=row.subject_id,
        token_digest=row.token_digest,
        issued_at=_aware(row.issued_at),
        expires_at=_aware(row.expires_at),
        rotated_to=row.rotated_to,
        revoked=bool(row.revoked),
    )


class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Relational refresh record store.

    Each call runs in its own transaction. Rotation locks the presented row
    with ``SELECT ... FOR UPDATE`` so a concurrent rotation of the same token
    waits and then reads the committed ``rotated_to`` (PostgreSQL/MySQL;
    SQLite serializes writers instead).

    :param session_factory: Returns the session to use, by default the
        Flask-scoped ``db.session``.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from postboard.core.extensions import db

            session_factory = lambda: db.session  # noqa: E731
        self._session_factory = session_factory

    @contextmanager
    def _tx(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise

    def add(self, record: RefreshRecord) -> None:
        with self._tx() as session:
            session.add(
                RefreshToken(
                    id=record.id,
                    subject_id=record.subject_id,
                    token_digest=record.token_digest,
                    issued_at=record.issued_at,
                    expires_at=record.expires_at,
                    rotated_to=record.rotated_to,
                    revoked=record.revoked,
                )
            )

    def get(self, record_id: str) -> RefreshRecord | None:
        with self._tx() as session:
            row = session.get(RefreshToken, record_id)
            return _to_record(row) if row else None

    def find_by_digest(self, token_digest: str) -> RefreshRecord | None:
        with self._tx() as session:
            row = session.execute(
                select(RefreshToken).where(RefreshToken.token_digest == token_digest)
            ).scalar_one_or_none()
            return _to_record(row) if row else None

    def rotate(
        self,
        *,
        token_digest: str,
        new_id: str,
        new_token_digest: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> RotationOutcome | None:
        with self._tx() as session:
            row = session.execute(
                select(RefreshToken)
                .where(RefreshToken.token_digest == token_digest)
                .with_for_update()
            ).scalar_one_or_none()
            if row is None:
                return None

            reused = row.rotated_to is not None
            previously_revoked = bool(row.revoked)
            row.revoked = True
            if not reused:
                row.rotated_to = new_id
            successor = RefreshToken(
                id=new_id,
                subject_id=row.subject_id,
                token_digest=new_token_digest,
                issued_at=issued_at,
                expires_at=expires_at,
                revoked=False,
            )
            session.add(successor)
            session.flush()
            outcome = RotationOutcome(
                previous=_to_record(row),
                successor=_to_record(successor),
                reused=reused,
                previously_revoked=previously_revoked,
            )
        return outcome

    def mark_revoked(self, record_id: str) -> bool:
        with self._tx() as session:
            result = session.execute(
                update(RefreshToken).where(RefreshToken.id == record_id).values(revoked=True)
            )
            return bool(result.rowcount)

    def revoke_all_for_subject(self, subject_id: str) -> int:
        with self._tx() as session:
            result = session.execute(
                update(RefreshToken)
                .where(RefreshToken.subject_id == subject_id)
                .values(revoked=True)
            )
            return int(result.rowcount or 0)

    def list_subject_records(self, subject_id: str) -> list[RefreshRecord]:
        with self._tx() as session:
            rows = session.execute(
                select(RefreshToken)
                .where(RefreshToken.subject_id == subject_id)
                .order_by(RefreshToken.id)
            ).scalars()
            return [_to_record(row) for row in rows]
