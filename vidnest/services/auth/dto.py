# vidnest/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from vidnest.services._shared.dto import IdentityClaim

LOCAL_STORAGE = "localstorage"

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param password: Raw password (site password in local mode).
    :type password: str
    :param username: Account name; ignored in local mode.
    :type username: str | None
    """

    password: str
    username: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Encoded refresh JWT to revoke, if the client has one.
    :type refresh_token: str | None
    """

    refresh_token: str | None = None


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    Input DTO for a password change by the authenticated account.

    :param new_password: Raw new password.
    :type new_password: str
    """

    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Output DTO for login and refresh.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param expires_at: Access token expiry as epoch seconds.
    :type expires_at: int
    :param claim: Identity the tokens were issued for.
    :type claim: IdentityClaim
    :param refresh_token: Encoded refresh JWT; ``None`` when a refresh did not rotate.
    :type refresh_token: str | None
    """

    access_token: str
    expires_at: int
    claim: IdentityClaim
    refresh_token: str | None = None

    @property
    def role(self) -> str:
        return self.claim.role

    @property
    def username(self) -> str | None:
        return self.claim.username


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission and credential configuration.

    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param rotation_threshold: Rotate a refresh token once less than this remains.
    :param storage_type: ``"localstorage"`` (single password) or an account backend.
    :param owner_username: Site owner account name (env-configured).
    :param owner_password: Site password; owner password in account mode.
    """

    access_expires: timedelta = timedelta(hours=1)
    refresh_expires: timedelta = timedelta(days=30)
    rotation_threshold: timedelta = timedelta(days=7)
    storage_type: str = LOCAL_STORAGE
    owner_username: str | None = None
    owner_password: str | None = None

    @property
    def local_mode(self) -> bool:
        return self.storage_type == LOCAL_STORAGE
