# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from typing import cast

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from werkzeug.security import check_password_hash, generate_password_hash

from vidnest.services._shared.dto import ROLES, Role
from vidnest.services._shared.ports import UserRecord, UserStore


def _b(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisUserStore(UserStore):
    """
    Redis-backed account store.

    Layout
    ------
    - ``u:{username}:pwd``  -> werkzeug password hash (string)
    - ``u:{username}:meta`` -> hash with ``role`` and ``banned``

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _kp(username: str) -> str:
        return f"u:{username}:pwd"

    @staticmethod
    def _km(username: str) -> str:
        return f"u:{username}:meta"

    # -------------------- API ------------------------

    def verify_credentials(self, username: str, password: str) -> bool:
        stored = self.r.get(self._kp(username))
        if not stored:
            return False
        return check_password_hash(_b(stored), password)

    def lookup_user(self, username: str) -> UserRecord | None:
        meta = self.r.hgetall(self._km(username))
        if not meta:
            return None
        role = _b(meta.get(b"role"), "user")
        return UserRecord(
            username=username,
            role=cast(Role, role if role in ROLES else "user"),
            banned=_b(meta.get(b"banned"), "0") == "1",
        )

    def register_user(self, username: str, password: str, *, role: Role = "user") -> UserRecord:
        pipe = self.r.pipeline(transaction=True)
        pipe.set(self._kp(username), generate_password_hash(password))
        pipe.hset(self._km(username), mapping={"role": role, "banned": "0"})
        pipe.execute()
        return UserRecord(username=username, role=role)

    def change_password(self, username: str, new_password: str) -> None:
        # xx=True: only overwrite an existing account
        updated = self.r.set(self._kp(username), generate_password_hash(new_password), xx=True)
        if not updated:
            raise KeyError(username)

    def set_banned(self, username: str, banned: bool = True) -> None:
        self.r.hset(self._km(username), "banned", "1" if banned else "0")

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except RedisError:
            return False
