from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from vidnest.services._shared.dto import IdentityClaim


@dataclass(frozen=True, slots=True)
class RefreshRecord:
    """
    Server-side record of a live refresh token.

    Records are immutable: rotation stores a new record and deletes the old.

    :ivar refresh_token: The encoded refresh token (registry key).
    :ivar claim: Identity the token was issued for.
    :ivar created_at: Insertion time (UTC).
    :ivar expires_at: Absolute expiration (UTC).
    """

    refresh_token: str
    claim: IdentityClaim
    created_at: datetime
    expires_at: datetime

    @property
    def username(self) -> str | None:
        return self.claim.username

    def remaining(self, now: datetime) -> timedelta:
        """Return the lifetime left at ``now`` (negative once expired)."""
        return self.expires_at - now


class RefreshTokenRegistry(Protocol):
    """
    Source of truth for which refresh tokens are currently honorable.

    Presence in the registry is necessary but not sufficient: callers must
    also verify the token signature through the token codec.
    """

    def store(self, token: str, claim: IdentityClaim, ttl: timedelta) -> RefreshRecord:
        """Insert a record, overwriting a colliding key."""

    def verify(self, token: str) -> RefreshRecord | None:
        """Return the live record, evicting it first if it has expired."""

    def revoke(self, token: str) -> None:
        """Delete a record; a missing key is not an error."""

    def revoke_all_for_identity(self, username: str | None = None) -> int:
        """
        Delete every record of an identity.

        Without ``username`` every ``local`` record is removed.

        :returns: Number of records deleted.
        """

    def count(self) -> int:
        """Return the number of stored records."""
