from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from vidnest.services._shared.dto import Role


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Read-model for an account.

    :ivar username: Unique account name.
    :ivar role: Authorization role (``owner`` is reserved for the env account).
    :ivar banned: Whether logins are refused for this account.
    """

    username: str
    role: Role = "user"
    banned: bool = False


class UserStore(Protocol):
    """
    Persistence collaborator for user records.

    Implementations never raise for unknown users; ``verify_credentials``
    returns ``False`` and ``lookup_user`` returns ``None``.
    """

    def verify_credentials(self, username: str, password: str) -> bool: ...

    def lookup_user(self, username: str) -> UserRecord | None: ...

    def register_user(self, username: str, password: str, *, role: Role = "user") -> UserRecord: ...

    def change_password(self, username: str, new_password: str) -> None: ...

    def set_banned(self, username: str, banned: bool = True) -> None: ...

    def ping(self) -> bool: ...


class InMemoryUserStore(UserStore):
    """Process-local user store used in tests and local tooling."""

    def __init__(self) -> None:
        self._users: dict[str, UserRecord] = {}
        self._hashes: dict[str, str] = {}
        self._lock = threading.Lock()

    def verify_credentials(self, username: str, password: str) -> bool:
        with self._lock:
            pw_hash = self._hashes.get(username)
        return pw_hash is not None and check_password_hash(pw_hash, password)

    def lookup_user(self, username: str) -> UserRecord | None:
        with self._lock:
            return self._users.get(username)

    def register_user(self, username: str, password: str, *, role: Role = "user") -> UserRecord:
        record = UserRecord(username=username, role=role)
        with self._lock:
            self._users[username] = record
            self._hashes[username] = generate_password_hash(password)
        return record

    def change_password(self, username: str, new_password: str) -> None:
        with self._lock:
            if username not in self._users:
                raise KeyError(username)
            self._hashes[username] = generate_password_hash(new_password)

    def set_banned(self, username: str, banned: bool = True) -> None:
        with self._lock:
            self._users[username] = replace(self._users[username], banned=banned)

    def ping(self) -> bool:
        return True
