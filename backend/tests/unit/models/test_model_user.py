"""Unit tests for :class:`postboard.models.user.User` and ``Account``."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from postboard.models.user import Account, User
from tests.factories.user import AccountFactory, UserFactory


def test_email_is_normalized(session):
    user = User(email="  Mixed@Example.COM ")
    session.add(user)
    session.commit()

    assert user.email == "mixed@example.com"
    assert len(user.id) == 36
    assert user.created_at is not None


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_blank_email_is_stored_as_null(app, raw):
    assert User(email=raw).email is None


def test_malformed_email_is_rejected(app):
    with pytest.raises(ValueError):
        User(email="not-an-email")


def test_display_name_falls_back_to_email_local_part(app):
    assert User(name="Ada", email="ada@example.com").display_name == "Ada"
    assert User(email="grace@example.com").display_name == "grace"
    assert User().display_name is None


def test_email_is_unique(session):
    UserFactory(email="dup@example.com")
    session.add(User(email="DUP@example.com"))

    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_provider_account_pair_is_unique(session):
    AccountFactory(provider="google", provider_account_id="sub-1")
    session.add(
        Account(user_id=UserFactory().id, provider="google", provider_account_id="sub-1")
    )

    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_deleting_user_removes_accounts(session):
    account = AccountFactory()
    user_id = account.user_id

    session.delete(account.user)
    session.commit()

    assert session.query(Account).filter_by(user_id=user_id).count() == 0
