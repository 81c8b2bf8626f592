# tests/unit/services/test_refresh_token_manager.py
"""
Unit tests for :class:`RefreshTokenManager` on the in-memory store.

Covers issuance, verification order (not found / revoked / expired),
single-use rotation with reuse detection, revocation and concurrent rotation.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta
from threading import Barrier

import pytest

from postboard.services._shared.errors import (
    RefreshTokenExpired,
    RefreshTokenNotFound,
    RefreshTokenRevoked,
)
from postboard.services._shared.ports import InMemoryRefreshTokenStore
from postboard.services.refresh_tokens import RefreshTokenManager

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Mutable clock injected into the manager."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture()
def manager(store, clock) -> RefreshTokenManager:
    return RefreshTokenManager(store, clock=clock)


# ------------------------------- Issue ------------------------------------ #
def test_issue_then_verify_returns_same_subject_and_fresh_id(manager):
    seen: set[str] = set()
    for _ in range(5):
        issued = manager.issue("u1")
        result = manager.verify(issued.token)

        assert result.subject_id == "u1"
        assert result.id == issued.id
        assert issued.id not in seen
        seen.add(issued.id)


def test_issue_sets_expiry_from_ttl(store, clock):
    manager = RefreshTokenManager(store, ttl=timedelta(hours=2), clock=clock)

    issued = manager.issue("u1")

    assert issued.expires_at == T0 + timedelta(hours=2)
    assert issued.max_age(T0) == 7200


def test_issue_defaults_to_thirty_days(manager):
    assert manager.issue("u1").expires_at == T0 + timedelta(days=30)


def test_issue_rejects_empty_subject(manager):
    with pytest.raises(ValueError):
        manager.issue("")


def test_tokens_are_url_safe_and_unique(manager):
    tokens = {manager.issue("u1").token for _ in range(20)}

    assert len(tokens) == 20
    for token in tokens:
        assert len(token) == 43
        assert set(token) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


def test_raw_token_is_never_stored(manager, store):
    issued = manager.issue("u1")
    record = store.get(issued.id)

    assert record is not None
    assert record.token_digest == RefreshTokenManager.digest(issued.token)
    assert issued.token not in (record.id, record.token_digest, record.subject_id)


def test_digest_is_deterministic_across_managers(store):
    other = RefreshTokenManager(InMemoryRefreshTokenStore())
    token = RefreshTokenManager.generate_token()

    assert RefreshTokenManager(store).digest(token) == other.digest(token)
    assert len(other.digest(token)) == 64


# ------------------------------- Verify ----------------------------------- #
def test_verify_unknown_token_fails_not_found(manager):
    with pytest.raises(RefreshTokenNotFound):
        manager.verify("never-issued")


def test_verify_expired_token_fails_expired(manager, clock):
    issued = manager.issue("u1")

    clock.advance(timedelta(days=30))  # now == expires_at

    with pytest.raises(RefreshTokenExpired):
        manager.verify(issued.token)


def test_verify_just_before_expiry_succeeds(manager, clock):
    issued = manager.issue("u1")
    clock.advance(timedelta(days=30) - timedelta(seconds=1))

    assert manager.verify(issued.token).id == issued.id


def test_revoked_takes_precedence_over_expired(manager, clock):
    issued = manager.issue("u1")
    manager.revoke_by_jti(issued.id)
    clock.advance(timedelta(days=31))

    with pytest.raises(RefreshTokenRevoked):
        manager.verify(issued.token)


def test_verify_has_no_side_effects(manager, store):
    issued = manager.issue("u1")
    before = store.get(issued.id)

    manager.verify(issued.token)

    assert store.get(issued.id) == before


# ------------------------------- Revoke ----------------------------------- #
def test_revoke_by_jti_then_verify_fails_revoked(manager):
    issued = manager.issue("u1")

    manager.revoke_by_jti(issued.id)

    with pytest.raises(RefreshTokenRevoked):
        manager.verify(issued.token)


def test_revoke_by_jti_is_idempotent_and_ignores_unknown_ids(manager, store):
    issued = manager.issue("u1")

    manager.revoke_by_jti(issued.id)
    manager.revoke_by_jti(issued.id)
    manager.revoke_by_jti("unknown-id")

    assert store.get(issued.id).revoked is True
    assert store.get("unknown-id") is None


def test_revoke_subject_revokes_every_device(manager):
    first = manager.issue("u1")
    second = manager.issue("u1")
    other = manager.issue("u2")

    assert manager.revoke_subject("u1") == 2

    for token in (first.token, second.token):
        with pytest.raises(RefreshTokenRevoked):
            manager.verify(token)
    assert manager.verify(other.token).subject_id == "u2"


# ------------------------------- Rotate ----------------------------------- #
def test_rotate_once_issues_working_successor(manager, store):
    t1 = manager.issue("u1")

    rotated = manager.rotate(t1.token)

    assert rotated.reused is False
    assert rotated.was_revoked is False
    assert rotated.was_expired is False
    assert rotated.next.subject_id == "u1"
    assert rotated.next.token != t1.token
    assert manager.verify(rotated.next.token).subject_id == "u1"
    with pytest.raises(RefreshTokenRevoked):
        manager.verify(t1.token)
    assert store.get(t1.id).rotated_to == rotated.next.id


def test_rotate_again_reports_reuse_and_keeps_first_successor(manager, store):
    """End-to-end: T1 -> T2 (fresh), T1 again -> T3 (reused), same subject."""
    t1 = manager.issue("u1")
    t2 = manager.rotate(t1.token)

    t3 = manager.rotate(t1.token)

    assert t3.reused is True
    assert t3.was_revoked is True
    assert t3.next.subject_id == "u1"
    assert manager.verify(t3.next.token).subject_id == "u1"
    assert manager.verify(t2.next.token).subject_id == "u1"
    assert store.get(t1.id).rotated_to == t2.next.id
    assert store.get(t1.id).revoked is True


def test_rotate_unknown_token_fails_not_found(manager):
    with pytest.raises(RefreshTokenNotFound):
        manager.rotate("never-issued")


def test_rotate_consumes_revoked_and_expired_tokens(manager, clock):
    revoked = manager.issue("u1")
    manager.revoke_by_jti(revoked.id)
    expired = manager.issue("u2")
    clock.advance(timedelta(days=31))

    from_revoked = manager.rotate(revoked.token)
    from_expired = manager.rotate(expired.token)

    assert from_revoked.reused is False
    assert from_revoked.was_revoked is True
    assert from_revoked.next.subject_id == "u1"
    assert from_expired.was_expired is True
    assert from_expired.was_revoked is False
    assert from_expired.next.subject_id == "u2"
    assert from_expired.next.expires_at == clock.now + timedelta(days=30)


def test_successor_expiry_is_measured_from_rotation_time(manager, clock):
    t1 = manager.issue("u1")
    clock.advance(timedelta(days=10))

    rotated = manager.rotate(t1.token)

    assert rotated.next.expires_at == T0 + timedelta(days=40)


@pytest.mark.parametrize("workers", [2, 8, 32])
def test_concurrent_rotation_has_exactly_one_winner(manager, workers):
    issued = manager.issue("u1")
    barrier = Barrier(workers)

    def _rotate():
        barrier.wait()
        return manager.rotate(issued.token)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda _: _rotate(), range(workers)))

    assert sum(1 for r in results if not r.reused) == 1
    assert len({r.next.id for r in results}) == workers
    assert all(r.next.subject_id == "u1" for r in results)
