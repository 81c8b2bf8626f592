"""Application user and linked external identity accounts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from postboard.core.extensions import db

from .base import ReprMixin, TimestampMixin, UUIDPKMixin


class User(UUIDPKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Application user; ``id`` is the subject of access and refresh tokens.

    Fields
    ------
    email : str | None
        Email reported by the identity provider, stored normalized
        (lowercase, trimmed). Apple may withhold it.
    email_verified_at : datetime | None
        Set when the provider asserted the email as verified.
    name : str | None
        Display name (Google only).
    image : str | None
        Avatar URL (Google only).
    accounts : list[Account]
        Linked external identities.
    """

    __tablename__ = "users"

    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)

    accounts: Mapped[list[Account]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    @property
    def display_name(self) -> str | None:
        """Name, else the local part of the email, else ``None``."""
        if self.name:
            return self.name
        if self.email:
            return self.email.split("@")[0]
        return None

    @validates("email")
    def _normalize_email(self, key: str, value: str | None) -> str | None:
        """
        Normalize the email; ``None`` and blank values are stored as ``None``.

        :raises ValueError: If a non-blank value has no ``@``.
        """
        if value is None:
            return None
        v = value.strip().lower()
        if not v:
            return None
        if "@" not in v:
            raise ValueError("Email format looks invalid.")
        return v


class Account(UUIDPKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    External identity (Google/Apple ``sub``) linked to a :class:`User`.

    ``(provider, provider_account_id)`` is unique across all users.
    """

    __tablename__ = "accounts"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="oidc")
    provider: Mapped[str] = mapped_column(String(20), nullable=False)
    provider_account_id: Mapped[str] = mapped_column(String(255), nullable=False)

    user: Mapped[User] = relationship(back_populates="accounts")

    __table_args__ = (
        UniqueConstraint(
            "provider", "provider_account_id", name="uq_accounts_provider_provider_account_id"
        ),
    )
