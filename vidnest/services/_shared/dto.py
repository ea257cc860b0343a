# comments in English; reST docstrings strict
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

Role = Literal["owner", "admin", "user"]
IdentityKind = Literal["local", "db"]

ROLES: frozenset[str] = frozenset({"owner", "admin", "user"})
IDENTITY_KINDS: frozenset[str] = frozenset({"local", "db"})

# Subject used in the JWT ``sub`` claim when there is no username (password mode).
LOCAL_SUBJECT = "local"


@dataclass(frozen=True, slots=True)
class IdentityClaim:
    """
    Signed payload asserting who a token represents and what role they hold.

    :param role: Authorization role.
    :type role: str
    :param kind: ``"local"`` for single-password mode, ``"db"`` for accounts.
    :type kind: str
    :param username: Account name; ``None`` only in local mode.
    :type username: str | None
    """

    role: Role
    kind: IdentityKind
    username: str | None = None

    @property
    def subject(self) -> str:
        """Return the value used as the token subject."""
        return self.username if self.username else LOCAL_SUBJECT

    def to_claims(self) -> dict[str, Any]:
        """Serialize into custom JWT claims (the subject travels separately)."""
        claims: dict[str, Any] = {"role": self.role, "kind": self.kind}
        if self.username:
            claims["username"] = self.username
        return claims

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> IdentityClaim | None:
        """
        Rebuild a claim from decoded JWT claims.

        :returns: The claim, or ``None`` when role/kind are missing or unknown.
        """
        role = claims.get("role")
        kind = claims.get("kind")
        if role not in ROLES or kind not in IDENTITY_KINDS:
            return None
        username = claims.get("username")
        if username is not None and not isinstance(username, str):
            return None
        return cls(role=role, kind=kind, username=username or None)
