"""Unit tests for the client-side refresh coordinator.

The API is simulated with ``httpx.MockTransport``; the refresh handler can be
slowed down so concurrent callers overlap with the in-flight refresh.
"""

from __future__ import annotations

import asyncio
import json
import os
import subprocess
import sys
from pathlib import Path

import httpx
import jwt
import pytest
import pytest_asyncio

from vidnest.client import RefreshCoordinator

BASE_URL = "http://vidnest.test"


class FakeApi:
    """Minimal server: ``/api/data`` accepts only the current access token."""

    def __init__(self) -> None:
        self.valid_access = "access-2"
        self.refresh_calls = 0
        self.refresh_delay = 0.05
        self.refresh_status = 200
        self.rotate = False
        self.refresh_error: Exception | None = None
        self.seen_refresh_bodies: list[dict] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/refresh":
            self.refresh_calls += 1
            self.seen_refresh_bodies.append(json.loads(request.content))
            await asyncio.sleep(self.refresh_delay)
            if self.refresh_error is not None:
                raise self.refresh_error
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, json={"ok": False, "error": "nope"})
            body = {"ok": True, "accessToken": self.valid_access, "expires_in": 0, "role": "user"}
            if self.rotate:
                body["refreshToken"] = "refresh-2"
            return httpx.Response(200, json=body)

        if request.url.path == "/api/slow":
            await asyncio.sleep(0.2)
        if request.headers.get("Authorization") == f"Bearer {self.valid_access}":
            return httpx.Response(200, json={"path": request.url.path})
        return httpx.Response(401, json={"ok": False, "error": "Unauthorized"})


@pytest.fixture()
def api() -> FakeApi:
    return FakeApi()


@pytest_asyncio.fixture
async def http(api):
    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(api)) as client:
        yield client


@pytest_asyncio.fixture
async def coordinator(http) -> RefreshCoordinator:
    coord = RefreshCoordinator(http, refresh_timeout=1.0, request_timeout=1.0)
    coord.set_tokens("access-1", "refresh-1")
    return coord


@pytest.mark.asyncio
async def test_non_401_passes_through(api, coordinator):
    coordinator.set_tokens("access-2", "refresh-1")

    resp = await coordinator.authorized_fetch("GET", "/api/data")

    assert resp.status_code == 200
    assert api.refresh_calls == 0


@pytest.mark.asyncio
async def test_401_refreshes_and_retries_once(api, coordinator):
    resp = await coordinator.authorized_fetch("GET", "/api/data")

    assert resp.status_code == 200
    assert api.refresh_calls == 1
    assert api.seen_refresh_bodies == [{"refreshToken": "refresh-1"}]
    assert coordinator.tokens.access_token == "access-2"
    # not rotated by the server: keep the old refresh token
    assert coordinator.tokens.refresh_token == "refresh-1"


@pytest.mark.asyncio
async def test_rotated_refresh_token_is_stored(api, coordinator):
    api.rotate = True

    await coordinator.authorized_fetch("GET", "/api/data")

    assert coordinator.tokens.refresh_token == "refresh-2"


@pytest.mark.asyncio
async def test_concurrent_401s_share_a_single_refresh(api, coordinator):
    responses = await asyncio.gather(
        *(coordinator.authorized_fetch("GET", f"/api/data/{i}") for i in range(20))
    )

    assert api.refresh_calls == 1
    assert [r.status_code for r in responses] == [200] * 20
    assert coordinator.refresh_count == 1


@pytest.mark.asyncio
async def test_late_401_uses_current_token_without_refreshing(api, coordinator):
    # /api/slow answers after the refresh triggered by /api/data completed
    slow = asyncio.create_task(coordinator.authorized_fetch("GET", "/api/slow"))
    fast = await coordinator.authorized_fetch("GET", "/api/data")

    resp = await slow

    assert fast.status_code == 200
    assert resp.status_code == 200
    assert api.refresh_calls == 1


@pytest.mark.asyncio
async def test_rejected_refresh_clears_tokens_and_returns_original_401(api, http):
    api.refresh_status = 401
    expired: list[bool] = []
    coordinator = RefreshCoordinator(http, on_session_expired=lambda: expired.append(True))
    coordinator.set_tokens("access-1", "refresh-1")

    resp = await coordinator.authorized_fetch("GET", "/api/data")

    assert resp.status_code == 401
    assert resp.json() == {"ok": False, "error": "Unauthorized"}
    assert coordinator.tokens.access_token is None
    assert coordinator.tokens.refresh_token is None
    assert expired == [True]


@pytest.mark.asyncio
async def test_network_error_during_refresh_is_a_failure(api, coordinator):
    api.refresh_error = httpx.ConnectError("boom")

    resp = await coordinator.authorized_fetch("GET", "/api/data")

    assert resp.status_code == 401
    assert coordinator.tokens.access_token is None


@pytest.mark.asyncio
async def test_refresh_timeout_is_a_failure(api, http):
    # MockTransport ignores timeouts; emulate the transport raising one
    api.refresh_error = httpx.ReadTimeout("slow")
    coordinator = RefreshCoordinator(http, refresh_timeout=0.01)
    coordinator.set_tokens("access-1", "refresh-1")

    resp = await coordinator.authorized_fetch("GET", "/api/data")

    assert resp.status_code == 401
    assert coordinator.tokens.refresh_token is None


@pytest.mark.asyncio
async def test_concurrent_callers_all_get_401_when_refresh_fails(api, coordinator):
    api.refresh_status = 401

    responses = await asyncio.gather(*(coordinator.authorized_fetch("GET", "/api/data") for _ in range(10)))

    assert api.refresh_calls == 1
    assert {r.status_code for r in responses} == {401}


@pytest.mark.asyncio
async def test_late_401s_after_failed_refresh_expire_the_session_once(api, http):
    api.refresh_status = 401
    expired: list[int] = []
    coordinator = RefreshCoordinator(http, on_session_expired=lambda: expired.append(1))
    coordinator.set_tokens("access-1", "refresh-1")

    # the slow requests answer after the refresh triggered by /api/data failed
    slow = [asyncio.create_task(coordinator.authorized_fetch("GET", "/api/slow")) for _ in range(5)]
    fast = await coordinator.authorized_fetch("GET", "/api/data")
    responses = [fast, *await asyncio.gather(*slow)]

    assert {r.status_code for r in responses} == {401}
    assert api.refresh_calls == 1
    assert expired == [1]


@pytest.mark.asyncio
async def test_new_tokens_rearm_refresh_after_expiry(api, http):
    api.refresh_status = 401
    expired: list[int] = []
    coordinator = RefreshCoordinator(http, on_session_expired=lambda: expired.append(1))
    coordinator.set_tokens("access-1", "refresh-1")
    await coordinator.authorized_fetch("GET", "/api/data")

    api.refresh_status = 200
    coordinator.set_tokens("access-1", "refresh-9")
    resp = await coordinator.authorized_fetch("GET", "/api/data")

    assert resp.status_code == 200
    assert api.refresh_calls == 2
    assert expired == [1]


@pytest.mark.asyncio
async def test_missing_refresh_token_fails_without_network(api, http):
    coordinator = RefreshCoordinator(http)
    coordinator.set_tokens("access-1")

    resp = await coordinator.authorized_fetch("GET", "/api/data")

    assert resp.status_code == 401
    assert api.refresh_calls == 0


@pytest.mark.asyncio
async def test_refresh_endpoint_bypasses_wrapper(api, coordinator):
    api.refresh_status = 401

    resp = await coordinator.authorized_fetch("POST", "/api/refresh", json={"refreshToken": "x"})

    assert resp.status_code == 401
    assert api.refresh_calls == 1
    # untouched: the wrapper did not treat this 401 as a session failure
    assert coordinator.tokens.access_token == "access-1"


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_refresh(api, coordinator):
    first = asyncio.create_task(coordinator.authorized_fetch("GET", "/api/data"))
    second = asyncio.create_task(coordinator.authorized_fetch("GET", "/api/data"))
    await asyncio.sleep(0.01)
    first.cancel()

    resp = await second

    assert resp.status_code == 200
    assert api.refresh_calls == 1
    with pytest.raises(asyncio.CancelledError):
        await first


@pytest.mark.asyncio
async def test_caller_headers_are_preserved():
    seen: dict[str, str] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(204)

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as client:
        coordinator = RefreshCoordinator(client)
        coordinator.set_tokens("access-1", "refresh-1")
        await coordinator.authorized_fetch("GET", "/api/data", headers={"X-Request-ID": "abc"})

    assert seen["authorization"] == "Bearer access-1"
    assert seen["x-request-id"] == "abc"


@pytest.mark.asyncio
async def test_logout_posts_refresh_token_and_clears():
    calls: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json={"ok": True})

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as client:
        coord = RefreshCoordinator(client)
        coord.set_tokens("access-1", "refresh-1")
        await coord.logout()

    assert calls == ["/api/logout"]
    assert coord.tokens.access_token is None


@pytest.mark.asyncio
async def test_current_identity_reads_claim_without_verification(http):
    token = jwt.encode(
        {"sub": "alice", "role": "admin", "kind": "db", "username": "alice"},
        "client-side-key-never-checked-0000",
        algorithm="HS256",
    )
    coordinator = RefreshCoordinator(http)
    assert coordinator.current_identity() is None

    coordinator.set_tokens(token, "refresh-1")

    identity = coordinator.current_identity()
    assert identity is not None
    assert identity.role == "admin"
    assert identity.username == "alice"


def test_client_import_does_not_load_flask():
    root = Path(__file__).resolve().parents[3]
    code = (
        "import sys, vidnest.client; "
        "loaded = [m for m in ('flask', 'flask_jwt_extended') if m in sys.modules]; "
        "print(','.join(loaded))"
    )
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(filter(None, [str(root), os.environ.get("PYTHONPATH")]))}

    result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, cwd=root, env=env, check=True)

    assert result.stdout.strip() == ""
