"""User/account repository used by the sign-in flow."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from postboard.models.user import Account, User


class UserRepository:
    """Persistence-only repository for :class:`User` and :class:`Account`.

    It never issues tokens; sessions are the refresh-token manager's job.
    """

    def __init__(self, *, session: Session) -> None:
        self.session = session

    # ---------------------------- Lookup helpers ----------------------------

    def get(self, user_id: str) -> User | None:
        """Fetch a user by primary key."""
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return self.session.execute(stmt).scalars().first()

    def get_by_account(self, provider: str, provider_account_id: str) -> User | None:
        """Return the user linked to ``(provider, provider_account_id)``."""
        stmt = (
            select(User)
            .join(Account, Account.user_id == User.id)
            .where(
                Account.provider == provider,
                Account.provider_account_id == provider_account_id,
            )
        )
        return self.session.execute(stmt).scalars().first()

    # ---------------------------- Writes ----------------------------

    def create(
        self,
        *,
        email: str | None = None,
        email_verified_at: datetime | None = None,
        name: str | None = None,
        image: str | None = None,
    ) -> User:
        """Insert a user and flush to obtain defaults."""
        user = User(email=email, email_verified_at=email_verified_at, name=name, image=image)
        self.session.add(user)
        self.session.flush()
        return user

    def link_account(self, user: User, *, provider: str, provider_account_id: str) -> Account:
        """Attach an external identity to ``user``."""
        account = Account(
            user_id=user.id,
            type="oidc",
            provider=provider,
            provider_account_id=provider_account_id,
        )
        self.session.add(account)
        self.session.flush()
        return account
