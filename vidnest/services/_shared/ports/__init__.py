"""
vidnest.services._shared.ports
==============================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token management and account persistence.

These ports decouple the service layer from concrete implementations
of token signing, refresh-token bookkeeping and user storage.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec`, the abstraction for signing and verifying tokens.

- :mod:`refresh_token_registry`:
    Defines :class:`~.RefreshTokenRegistry` and :class:`~.RefreshRecord`, the
    server-side tracking of live refresh tokens.

- :mod:`user_store`:
    Defines :class:`~.UserStore`, :class:`~.UserRecord` and
    :class:`~.InMemoryUserStore`.

Design Notes
------------
Concrete adapters (JWT, in-memory registry, Redis) implement these
interfaces under ``vidnest.infra``.
"""

from __future__ import annotations

from .refresh_token_registry import RefreshRecord, RefreshTokenRegistry
from .token_codec import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenCodec
from .user_store import InMemoryUserStore, UserRecord, UserStore

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "TokenCodec",
    "RefreshTokenRegistry",
    "RefreshRecord",
    "UserStore",
    "UserRecord",
    "InMemoryUserStore",
]
