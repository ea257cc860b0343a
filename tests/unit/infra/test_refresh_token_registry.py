"""Unit tests for the in-memory refresh token registry.

A mutable clock replaces wall time so expiry is exercised without sleeping.
"""

from __future__ import annotations

import threading
import time
from datetime import UTC, datetime, timedelta

import pytest

from vidnest.infra.memory.refresh_token_registry import InMemoryRefreshTokenRegistry
from vidnest.services._shared.dto import IdentityClaim

ALICE = IdentityClaim(role="admin", kind="db", username="alice")
BOB = IdentityClaim(role="user", kind="db", username="bob")
LOCAL = IdentityClaim(role="user", kind="local")


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture()
def clock() -> _Clock:
    return _Clock()


@pytest.fixture()
def registry(clock):
    reg = InMemoryRefreshTokenRegistry(clock=clock)
    yield reg
    reg.close()


def test_store_and_verify(registry, clock):
    record = registry.store("rt-1", ALICE, timedelta(days=30))

    assert registry.verify("rt-1") == record
    assert record.username == "alice"
    assert record.created_at == clock.now
    assert record.expires_at == clock.now + timedelta(days=30)


def test_verify_unknown_token_returns_none(registry):
    assert registry.verify("nope") is None


def test_verify_evicts_expired_record(registry, clock):
    registry.store("rt-1", ALICE, timedelta(hours=1))
    clock.advance(timedelta(hours=1, seconds=1))

    assert registry.verify("rt-1") is None
    assert registry.count() == 0


def test_record_valid_until_exact_expiry(registry, clock):
    registry.store("rt-1", ALICE, timedelta(hours=1))
    clock.advance(timedelta(hours=1))

    assert registry.verify("rt-1") is not None


def test_revoke_is_idempotent(registry):
    registry.store("rt-1", ALICE, timedelta(days=1))
    registry.revoke("rt-1")
    registry.revoke("rt-1")

    assert registry.verify("rt-1") is None


def test_revoke_all_for_identity_only_touches_that_user(registry):
    registry.store("a-1", ALICE, timedelta(days=1))
    registry.store("a-2", ALICE, timedelta(days=1))
    registry.store("b-1", BOB, timedelta(days=1))
    registry.store("l-1", LOCAL, timedelta(days=1))

    assert registry.revoke_all_for_identity("alice") == 2
    assert registry.verify("a-1") is None
    assert registry.verify("b-1") is not None
    assert registry.verify("l-1") is not None


def test_revoke_all_without_username_drops_every_local_session(registry):
    registry.store("l-1", LOCAL, timedelta(days=1))
    registry.store("l-2", LOCAL, timedelta(days=1))
    registry.store("b-1", BOB, timedelta(days=1))

    assert registry.revoke_all_for_identity() == 2
    assert registry.count() == 1


def test_sweep_removes_only_expired(registry, clock):
    registry.store("short", ALICE, timedelta(minutes=1))
    registry.store("long", BOB, timedelta(days=1))
    clock.advance(timedelta(minutes=2))

    assert registry.sweep() == 1
    assert registry.count() == 1
    assert registry.verify("long") is not None


def test_sweeper_starts_lazily_and_stops_on_close(clock):
    reg = InMemoryRefreshTokenRegistry(clock=clock, sweep_interval=3600)
    assert reg.sweeper_running is False

    reg.store("rt-1", ALICE, timedelta(days=1))
    assert reg.sweeper_running is True

    reg.close()
    assert reg.sweeper_running is False


def test_background_sweep_runs_periodically(clock):
    reg = InMemoryRefreshTokenRegistry(clock=clock, sweep_interval=0.01)
    try:
        reg.store("rt-1", ALICE, timedelta(seconds=1))
        clock.advance(timedelta(seconds=2))
        deadline = time.monotonic() + 2
        while reg.count() and time.monotonic() < deadline:
            time.sleep(0.01)
        assert reg.count() == 0
    finally:
        reg.close()


def test_concurrent_stores_are_all_kept(registry):
    def worker(i: int) -> None:
        for j in range(50):
            registry.store(f"rt-{i}-{j}", BOB, timedelta(days=1))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert registry.count() == 400
