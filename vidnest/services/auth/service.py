# vidnest/services/auth/service.py
from __future__ import annotations

import hmac
import logging

from vidnest.services._shared.base import BaseService, ServiceContext
from vidnest.services._shared.dto import IdentityClaim
from vidnest.services._shared.errors import (
    ConfigError,
    ForbiddenError,
    InvalidCredentials,
    InvalidToken,
    MalformedRequest,
)
from vidnest.services._shared.ports import (
    REFRESH_TOKEN_TYPE,
    RefreshTokenRegistry,
    TokenCodec,
    UserStore,
)
from vidnest.services.auth.dto import (
    AuthTokenConfig,
    ChangePasswordIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    SessionOut,
)

log = logging.getLogger(__name__)


def _same_secret(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode(), expected.encode())


class AuthService(BaseService):
    """
    Session lifecycle service (login / refresh / logout).

    Access tokens are stateless; refresh tokens are signed by the codec AND
    tracked in the registry, and both checks must pass to refresh. One active
    refresh family per identity: login revokes the identity's previous
    refresh tokens before issuing new ones (local mode has no username, so it
    revokes every local-mode session).
    """

    def __init__(
        self,
        *,
        token_codec: TokenCodec,
        registry: RefreshTokenRegistry,
        user_store: UserStore,
        token_cfg: AuthTokenConfig | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_codec: Adapter signing/verifying JWTs.
        :param registry: Server-side refresh token registry (owned by this service).
        :param user_store: Account persistence collaborator.
        :param token_cfg: Lifetimes and credential configuration.
        """
        super().__init__(ctx=ctx)
        self.tokens = token_codec
        self.registry = registry
        self.users = user_store
        self.cfg = token_cfg or AuthTokenConfig()

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :returns: Session with access and refresh tokens.
        :raises InvalidCredentials: If credentials are rejected.
        :raises MalformedRequest: If a required field is missing.
        :raises ConfigError: If the deployment has no password/secret configured.
        """
        if self.cfg.local_mode:
            claim = self._authenticate_local(dto)
        else:
            claim = self._authenticate_account(dto)

        # Revoke-before-issue keeps at most one live refresh token per identity.
        revoked = self.registry.revoke_all_for_identity(claim.username)

        access = self.tokens.sign(claim, self.cfg.access_expires)
        refresh = self.tokens.sign(claim, self.cfg.refresh_expires, token_type=REFRESH_TOKEN_TYPE)
        self.registry.store(refresh, claim, self.cfg.refresh_expires)

        log.info(
            "auth.login kind=%s role=%s user=%s revoked=%s",
            claim.kind,
            claim.role,
            claim.username or "-",
            revoked,
        )
        return SessionOut(
            access_token=access,
            refresh_token=refresh,
            expires_at=self._access_expiry(),
            claim=claim,
        )

    def _authenticate_local(self, dto: LoginIn) -> IdentityClaim:
        expected = self.cfg.owner_password
        if not expected:
            raise ConfigError("Site password is not configured")
        if not isinstance(dto.password, str) or not dto.password:
            raise MalformedRequest("Password is required")
        if not _same_secret(dto.password, expected):
            log.warning("auth.login_failed kind=local reason=bad_password")
            raise InvalidCredentials("bad_password")
        return IdentityClaim(role="user", kind="local")

    def _authenticate_account(self, dto: LoginIn) -> IdentityClaim:
        username = dto.username
        if not username:
            raise MalformedRequest("Username is required")
        if not dto.password:
            raise MalformedRequest("Password is required")

        owner = self.cfg.owner_username
        if owner and username == owner:
            if self.cfg.owner_password and _same_secret(dto.password, self.cfg.owner_password):
                return IdentityClaim(role="owner", kind="db", username=username)
            log.warning("auth.login_failed kind=db reason=bad_password user=%s", username)
            raise InvalidCredentials("bad_password")

        user = self.users.lookup_user(username)
        if user is not None and user.banned:
            log.warning("auth.login_failed kind=db reason=banned user=%s", username)
            raise InvalidCredentials("banned")

        if not self.users.verify_credentials(username, dto.password):
            reason = "unknown_user" if user is None else "bad_password"
            log.warning("auth.login_failed kind=db reason=%s user=%s", reason, username)
            raise InvalidCredentials(reason)

        role = user.role if user is not None else "user"
        return IdentityClaim(role=role, kind="db", username=username)

    # ------------------------------------------------------------------ #
    # Refresh with sliding rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> SessionOut:
        """
        Mint a new access token from a live refresh token.

        Security
        --------
        - Requires presence in the registry (revocation) AND a valid
          signature (integrity); a signature failure also evicts the record.
        - Rotates the refresh token only when less than
          ``rotation_threshold`` of its lifetime remains; otherwise
          ``SessionOut.refresh_token`` is ``None`` and the client keeps its token.

        :raises InvalidToken: For any unusable refresh token.
        """
        token = dto.refresh_token

        record = self.registry.verify(token)
        if record is None:
            log.info("auth.refresh_denied reason=registry_miss")
            raise InvalidToken("registry_miss")

        if self.tokens.verify(token, token_type=REFRESH_TOKEN_TYPE) is None:
            self.registry.revoke(token)
            log.warning("auth.refresh_denied reason=signature user=%s", record.username or "-")
            raise InvalidToken("signature")

        claim = record.claim
        access = self.tokens.sign(claim, self.cfg.access_expires)

        new_refresh: str | None = None
        if record.remaining(self.now_utc()) < self.cfg.rotation_threshold:
            new_refresh = self.tokens.sign(
                claim, self.cfg.refresh_expires, token_type=REFRESH_TOKEN_TYPE
            )
            self.registry.store(new_refresh, claim, self.cfg.refresh_expires)
            self.registry.revoke(token)
            log.info("auth.refresh_rotated user=%s", claim.username or "-")

        return SessionOut(
            access_token=access,
            refresh_token=new_refresh,
            expires_at=self._access_expiry(),
            claim=claim,
        )

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """Revoke the supplied refresh token, if any. Never fails."""
        if dto.refresh_token:
            self.registry.revoke(dto.refresh_token)

    def revoke_sessions(self, username: str) -> int:
        """
        Revoke every refresh token issued to ``username``.

        Access tokens already handed out stay valid until they expire.

        :returns: Number of revoked refresh tokens.
        """
        revoked = self.registry.revoke_all_for_identity(username)
        log.info("auth.sessions_revoked user=%s revoked=%s", username, revoked)
        return revoked

    # ------------------------------------------------------------------ #
    # Password change
    # ------------------------------------------------------------------ #

    def change_password(self, identity: IdentityClaim, dto: ChangePasswordIn) -> None:
        """
        Change the password of the authenticated account.

        :raises MalformedRequest: In local mode, for local identities or an empty password.
        :raises ForbiddenError: For the env-configured owner account.
        """
        if self.cfg.local_mode or identity.kind != "db" or not identity.username:
            raise MalformedRequest("Password change is not supported in local mode")
        if not dto.new_password:
            raise MalformedRequest("New password is required")
        if self.cfg.owner_username and identity.username == self.cfg.owner_username:
            raise ForbiddenError("The owner password cannot be changed here")
        try:
            self.users.change_password(identity.username, dto.new_password)
        except KeyError as exc:
            raise MalformedRequest("Account no longer exists") from exc
        log.info("auth.password_changed user=%s", identity.username)

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _access_expiry(self) -> int:
        return int((self.now_utc() + self.cfg.access_expires).timestamp())
