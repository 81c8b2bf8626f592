# postboard/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from postboard.services._shared.ports import Provider
from postboard.services.refresh_tokens import IssueResult

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class BootstrapIn:
    """
    Input DTO for signing in with an external identity token.

    :param provider: ``"google"`` or ``"apple"``.
    :type provider: str
    :param id_token: Raw OIDC ID token issued by the provider.
    :type id_token: str
    """

    provider: Provider
    id_token: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for session refresh.

    :param refresh_token: Opaque refresh token read from the cookie.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Opaque refresh token from the cookie, if any.
    :type refresh_token: str | None
    :param all_sessions: Also revoke every other refresh token of the user.
    :type all_sessions: bool
    """

    refresh_token: str | None
    all_sessions: bool = False


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Public view of the signed-in user.

    :param id: Application user id (token subject).
    :param email: Email, when known.
    :param display_name: Name or email local part.
    :param created_at: Account creation instant.
    """

    id: str
    email: str | None
    display_name: str | None
    created_at: datetime | None


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Result of bootstrap/refresh.

    :param user: Signed-in user.
    :param access_token: Short-lived bearer JWT (JSON body).
    :param refresh: Refresh token to set as cookie (never in the body).
    :param reused: Refresh path only: the presented token was a replay.
    """

    user: UserOut
    access_token: str
    refresh: IssueResult
    reused: bool = False
