# postboard/services/auth/service.py
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from postboard.models.user import User
from postboard.repositories.user import UserRepository
from postboard.services._shared.base import BaseService, ServiceContext
from postboard.services._shared.errors import (
    AuthenticationError,
    IdentityVerificationError,
    NotFoundError,
    RefreshTokenError,
)
from postboard.services._shared.ports import (
    AccessTokenProvider,
    IdentityVerifier,
    VerifiedProfile,
)
from postboard.services.auth.dto import (
    BootstrapIn,
    LogoutIn,
    RefreshIn,
    SessionOut,
    UserOut,
)
from postboard.services.refresh_tokens import RefreshTokenManager, RotateResult

log = logging.getLogger(__name__)


def _user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        created_at=user.created_at,
    )


class AuthService(BaseService):
    """
    Session lifecycle service (bootstrap / refresh / logout / whoami).

    Access tokens come from a pluggable :class:`AccessTokenProvider`; refresh
    tokens are opaque secrets owned by :class:`RefreshTokenManager`.

    :param refresh_tokens: Refresh-token lifecycle manager.
    :param token_provider: Access-token signer.
    :param identity_verifier: Google/Apple ID-token verifier.
    :param access_expires: Access-token lifetime; ``None`` uses the provider default.
    :param revoke_on_reuse: Treat a replayed refresh token as an incident:
        revoke all of the subject's refresh tokens and reject the call.
    """

    def __init__(
        self,
        *,
        refresh_tokens: RefreshTokenManager,
        token_provider: AccessTokenProvider,
        identity_verifier: IdentityVerifier,
        access_expires: timedelta | None = None,
        revoke_on_reuse: bool = False,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.refresh_tokens = refresh_tokens
        self.tokens = token_provider
        self.identity = identity_verifier
        self.access_expires = access_expires
        self.revoke_on_reuse = revoke_on_reuse

    # ------------------------------------------------------------------ #
    # Bootstrap (external identity -> first session)
    # ------------------------------------------------------------------ #

    def bootstrap(self, dto: BootstrapIn) -> SessionOut:
        """
        Verify an external ID token, upsert the user and open a session.

        :raises IdentityVerificationError: The ID token was rejected.
        """
        try:
            profile = self.identity.verify(dto.provider, dto.id_token)
        except IdentityVerificationError as exc:
            log.info("bootstrap.verify_failed", extra={"provider": dto.provider, "reason": str(exc)})
            raise

        with self.rw_uow() as uow:
            user = self._upsert_user(uow.users, dto.provider, profile)
            user_out = _user_out(user)

        refresh = self.refresh_tokens.issue(user_out.id)
        access = self._access_token(user_out.id)
        log.info("auth.bootstrap", extra={"subject_id": user_out.id, "provider": dto.provider})
        return SessionOut(user=user_out, access_token=access, refresh=refresh)

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> SessionOut:
        """
        Rotate the presented refresh token and emit a new access token.

        Security
        --------
        - Unknown tokens fail. Any known token is consumed by the rotation.
        - A replayed token is logged as ``refresh.reuse_detected``, expired or
          not. With ``revoke_on_reuse`` every session of the subject is
          revoked and the caller must sign in again.
        - Otherwise an expired token, or one revoked without being rotated
          (logout), is rejected and its successor revoked at once.

        :raises AuthenticationError: Token unknown, user gone, or reuse rejected.
        """
        try:
            rotated = self.refresh_tokens.rotate(dto.refresh_token)
        except RefreshTokenError as exc:
            log.info("refresh.invalid", extra={"reason": exc.code})
            raise AuthenticationError(str(exc), code="invalid_refresh") from exc

        subject_id = rotated.next.subject_id
        # Replays are reported even when the replayed token has expired since
        if rotated.reused:
            log.warning(
                "refresh.reuse_detected",
                extra={"subject_id": subject_id, "record_id": rotated.next.id},
            )
            if self.revoke_on_reuse:
                self.refresh_tokens.revoke_subject(subject_id)
                raise AuthenticationError(
                    "Refresh token reuse detected. Please sign in again.",
                    code="refresh_reused",
                )

        stale_reason = self._stale_reason(rotated)
        if stale_reason is not None:
            # The consumed token no longer grants a session: drop its successor too
            self.refresh_tokens.revoke_by_jti(rotated.next.id)
            log.info("refresh.invalid", extra={"reason": stale_reason, "subject_id": subject_id})
            raise AuthenticationError("Refresh token is not valid.", code="invalid_refresh")

        with self.ro_uow() as uow:
            user = uow.users.get(subject_id)
            if user is None:
                self.refresh_tokens.revoke_by_jti(rotated.next.id)
                raise AuthenticationError("Refresh token is not valid.", code="invalid_refresh")
            user_out = _user_out(user)

        access = self._access_token(user_out.id)
        return SessionOut(
            user=user_out,
            access_token=access,
            refresh=rotated.next,
            reused=rotated.reused,
        )

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Best-effort revoke of the presented refresh token. Never raises: bad
        tokens and store outages are logged as ``logout.revoke_skipped``.
        """
        if not dto.refresh_token:
            return
        try:
            current = self.refresh_tokens.verify(dto.refresh_token)
            self.refresh_tokens.revoke_by_jti(current.id)
            if dto.all_sessions:
                self.refresh_tokens.revoke_subject(current.subject_id)
        except RefreshTokenError as exc:
            log.info("logout.revoke_skipped", extra={"reason": exc.code})
        except Exception:
            log.exception("logout.revoke_skipped", extra={"reason": "store_error"})

    # ------------------------------------------------------------------ #
    # Who am I
    # ------------------------------------------------------------------ #

    def whoami(self, user_id: str) -> UserOut:
        """
        Return the public view of ``user_id``.

        :raises NotFoundError: User no longer exists.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return _user_out(user)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _stale_reason(rotated: RotateResult) -> str | None:
        if rotated.was_expired:
            return "expired_refresh"
        if rotated.was_revoked and not rotated.reused:
            return "revoked_refresh"
        return None

    def _access_token(self, user_id: str) -> str:
        return self.tokens.create_access_token(identity=user_id, expires_delta=self.access_expires)

    @staticmethod
    def _upsert_user(repo: UserRepository, provider: str, profile: VerifiedProfile) -> User:
        """
        Existing account wins; otherwise reuse the user owning the email or
        create one, then link the new account.
        """
        user = repo.get_by_account(provider, profile.provider_account_id)
        if user is not None:
            return user

        user = repo.get_by_email(profile.email) if profile.email else None
        if user is None:
            user = repo.create(
                email=profile.email,
                email_verified_at=datetime.now(UTC) if profile.email_verified else None,
                name=profile.name,
                image=profile.image,
            )
        repo.link_account(
            user, provider=provider, provider_account_id=profile.provider_account_id
        )
        return user
