"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. The translation to HTTP responses (RFC 7807) is handled by
``postboard/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, stores or domain logic.
    """


# --------------------------------------------------------------------------- #
# Generic domain errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "Account").
    :param detail: Short human-readable explanation.
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"


class AuthenticationError(ServiceError):
    """
    Raised when a caller must (re-)authenticate.

    :param message: Client-safe explanation.
    :param code: Stable machine-readable reason (``invalid_refresh``, ...).
    """

    def __init__(self, message: str, *, code: str = "unauthorized") -> None:
        super().__init__(message)
        self.code = code


class IdentityVerificationError(ServiceError):
    """Raised when an external identity token cannot be verified."""


# --------------------------------------------------------------------------- #
# Refresh-token lifecycle
# --------------------------------------------------------------------------- #


class RefreshTokenError(ServiceError):
    """Base class for refresh tokens that cannot be honored."""

    code = "invalid_refresh"

    def __init__(self, message: str = "Refresh token is not valid.") -> None:
        super().__init__(message)


class RefreshTokenNotFound(RefreshTokenError):
    """No record matches the digest of the presented token."""

    code = "invalid_refresh"

    def __init__(self) -> None:
        super().__init__("Refresh token is unknown.")


class RefreshTokenRevoked(RefreshTokenError):
    """The matching record has been revoked (logout or rotation)."""

    code = "revoked_refresh"

    def __init__(self) -> None:
        super().__init__("Refresh token has been revoked.")


class RefreshTokenExpired(RefreshTokenError):
    """The matching record is past its ``expires_at`` instant."""

    code = "expired_refresh"

    def __init__(self) -> None:
        super().__init__("Refresh token has expired.")
