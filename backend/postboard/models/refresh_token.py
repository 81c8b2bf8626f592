"""Relational persistence for refresh records (``database`` store backend)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from postboard.core.extensions import db

from .base import ReprMixin


class RefreshToken(ReprMixin, db.Model):
    """
    One row per issued refresh token.

    Only the SHA-256 digest of the token is stored. ``rotated_to`` and
    ``revoked`` are written under a row lock by
    :class:`postboard.infra.sql.sqlalchemy_refresh_token_store.SQLAlchemyRefreshTokenStore`.
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    token_digest: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    rotated_to: Mapped[str | None] = mapped_column(String(36), nullable=True)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
