"""Global pytest fixtures for the vidnest API."""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import fakeredis
import pytest
import redis
from flask import Flask
from flask.testing import FlaskClient

from vidnest import create_app
from vidnest.core.config import TestingConfig
from vidnest.core.extensions import get_refresh_registry, get_user_store


class AccountModeConfig(TestingConfig):
    """Testing configuration with Redis-backed accounts (served by fakeredis)."""

    STORAGE_TYPE = "redis"
    REDIS_URL = "redis://fake:6379/0"


class NoSecretConfig(TestingConfig):
    """Testing configuration of an insecure deployment."""

    JWT_SECRET_KEY = None
    OWNER_PASSWORD = None


def _build(config: type[TestingConfig]) -> Generator[Flask, None, None]:
    application = create_app(config, instance_relative_config=False)
    with application.app_context():
        yield application
        get_refresh_registry().close()


@pytest.fixture()
def app() -> Generator[Flask, None, None]:
    """Create a local-mode (single password) application.

    Returns
    -------
    Generator[Flask, None, None]
        Configured Flask application with an active app context.
    """

    yield from _build(TestingConfig)


@pytest.fixture()
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> fakeredis.FakeRedis:
    """Route every ``redis.Redis.from_url`` call to one in-memory server."""

    server = fakeredis.FakeRedis()
    monkeypatch.setattr(redis.Redis, "from_url", classmethod(lambda cls, url, **kw: server))
    return server


@pytest.fixture()
def account_app(fake_redis: fakeredis.FakeRedis) -> Generator[Flask, None, None]:
    """Create an account-mode application backed by fakeredis."""

    yield from _build(AccountModeConfig)


@pytest.fixture()
def insecure_app() -> Generator[Flask, None, None]:
    """Create an application without any signing secret."""

    yield from _build(NoSecretConfig)


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a Flask test client for the local-mode app."""

    return app.test_client()


@pytest.fixture()
def account_client(account_app: Flask) -> FlaskClient:
    """Return a Flask test client for the account-mode app."""

    return account_app.test_client()


@pytest.fixture()
def accounts(account_app: Flask) -> dict[str, str]:
    """Register an admin, a regular user and a banned user; return passwords."""

    store = get_user_store()
    store.register_user("alice", "alice-pass", role="admin")
    store.register_user("bob", "bob-pass", role="user")
    store.register_user("mallory", "mallory-pass", role="user")
    store.set_banned("mallory")
    return {"alice": "alice-pass", "bob": "bob-pass", "mallory": "mallory-pass"}


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-01-01"):
    ...         ...
    """

    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2024-01-01")

    return _factory
