"""Service layer public API.

Re-exports
----------
- :class:`BaseService`, :class:`ServiceContext` (``postboard.services._shared.base``)
- :class:`RefreshTokenManager` and its result DTOs (``postboard.services.refresh_tokens``)
- :class:`AuthService` and its DTOs (``postboard.services.auth``)
"""

from __future__ import annotations

from ._shared.base import BaseService, ServiceContext
from .auth import AuthService, BootstrapIn, LogoutIn, RefreshIn, SessionOut, UserOut
from .refresh_tokens import IssueResult, RefreshTokenManager, RotateResult, VerifyResult

__all__ = [
    "BaseService",
    "ServiceContext",
    "RefreshTokenManager",
    "IssueResult",
    "VerifyResult",
    "RotateResult",
    "AuthService",
    "BootstrapIn",
    "RefreshIn",
    "LogoutIn",
    "SessionOut",
    "UserOut",
]
