"""Repositories exposing persistence helpers for domain models."""

from __future__ import annotations

from .user import UserRepository

__all__ = ["UserRepository"]
