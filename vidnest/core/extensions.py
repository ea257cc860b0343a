"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import atexit
import logging
import weakref
from typing import cast

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from vidnest.infra.jwt.flask_jwt_token_codec import JWTTokenCodec
from vidnest.infra.memory.refresh_token_registry import InMemoryRefreshTokenRegistry
from vidnest.infra.redis.redis_user_store import RedisUserStore
from vidnest.services._shared.ports import InMemoryUserStore, UserStore

log = logging.getLogger(__name__)

REDIS_STORAGE_TYPES = frozenset({"redis", "kvrocks"})

# Global singleton (import-safe)
jwt = JWTManager()


def init_app(app: Flask) -> None:
    """Initialize JWT, the optional Redis client and the auth collaborators.

    Parameters
    ----------
    app: flask.Flask
        Application receiving the extensions. Each application owns one
        refresh token registry; its sweeper thread is stopped at interpreter
        exit unless the registry was already garbage collected.
    """
    jwt.init_app(app)

    storage_type = str(app.config.get("STORAGE_TYPE", "localstorage"))
    redis_url = app.config.get("REDIS_URL")
    if storage_type in REDIS_STORAGE_TYPES and not redis_url:
        raise RuntimeError(f"REDIS_URL is required when STORAGE_TYPE={storage_type!r}")

    if redis_url:
        redis_client: redis.Redis | None = redis.Redis.from_url(redis_url)
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        app.extensions["redis_client"] = redis_client
    else:
        redis_client = None
        app.extensions.pop("redis_client", None)

    user_store: UserStore
    if storage_type in REDIS_STORAGE_TYPES and redis_client is not None:
        user_store = RedisUserStore(r=redis_client)
    else:
        user_store = InMemoryUserStore()
    app.extensions["user_store"] = user_store
    log.info("extensions.user_store storage_type=%s backend=%s", storage_type, type(user_store).__name__)

    registry = InMemoryRefreshTokenRegistry(
        sweep_interval=float(app.config.get("REFRESH_SWEEP_INTERVAL", 3600)),
    )
    app.extensions["refresh_registry"] = registry
    atexit.register(_close_registry_at_exit, weakref.ref(registry))

    app.extensions["token_codec"] = JWTTokenCodec()


def _close_registry_at_exit(ref: weakref.ReferenceType[InMemoryRefreshTokenRegistry]) -> None:
    registry = ref()
    if registry is not None:
        registry.close()


def get_user_store() -> UserStore:
    """Return the account store bound to the current application."""
    return cast(UserStore, current_app.extensions["user_store"])


def get_refresh_registry() -> InMemoryRefreshTokenRegistry:
    """Return the refresh token registry bound to the current application."""
    return cast(InMemoryRefreshTokenRegistry, current_app.extensions["refresh_registry"])


def get_token_codec() -> JWTTokenCodec:
    """Return the token codec bound to the current application."""
    return cast(JWTTokenCodec, current_app.extensions["token_codec"])
