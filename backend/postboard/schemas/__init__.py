"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import BootstrapSchema, SessionResponseSchema, SessionUserSchema

__all__ = [
    "BootstrapSchema",
    "SessionResponseSchema",
    "SessionUserSchema",
]
