"""Client-side access token refresh with single-flight coordination.

:class:`RefreshCoordinator` wraps an ``httpx.AsyncClient``. A request that
comes back ``401`` triggers one refresh against the refresh endpoint; every
other request failing meanwhile awaits that same refresh instead of starting
its own, then retries exactly once with the new access token.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from vidnest.infra.jwt.unverified import decode_unverified
from vidnest.services._shared.dto import IdentityClaim

log = logging.getLogger(__name__)

DEFAULT_REFRESH_PATH = "/api/refresh"
DEFAULT_LOGOUT_PATH = "/api/logout"


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Tokens held by one client.

    :param access_token: Bearer token attached to requests.
    :param refresh_token: Token exchanged for a new access token on ``401``.
    """

    access_token: str | None = None
    refresh_token: str | None = None


class RefreshCoordinator:
    """
    Authorized fetch wrapper owning the client's token pair.

    One coordinator per client/event loop. The in-flight refresh is a shared
    :class:`asyncio.Task` awaited through :func:`asyncio.shield`, so a waiter
    being cancelled never cancels the refresh the others depend on.

    :param client: Transport for all calls (``base_url`` usually set).
    :param refresh_path: Path of the refresh endpoint; requests to it bypass
        the 401 handling.
    :param refresh_timeout: Seconds before a refresh call counts as failed.
    :param request_timeout: Default timeout of wrapped and retried requests.
    :param on_session_expired: Called once after a failed refresh cleared the
        tokens; later 401s return without refreshing until :meth:`set_tokens`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        refresh_path: str = DEFAULT_REFRESH_PATH,
        logout_path: str = DEFAULT_LOGOUT_PATH,
        refresh_timeout: float = 10.0,
        request_timeout: float = 30.0,
        on_session_expired: Callable[[], None] | None = None,
    ) -> None:
        self._client = client
        self.refresh_path = refresh_path
        self.logout_path = logout_path
        self.refresh_timeout = refresh_timeout
        self.request_timeout = request_timeout
        self._on_session_expired = on_session_expired
        self._tokens = TokenPair()
        self._inflight: asyncio.Task[bool] | None = None
        # Set once a refresh failed; cleared by set_tokens.
        self._expired = False
        self.refresh_count = 0

    # ------------------------------------------------------------------ #
    # Token storage
    # ------------------------------------------------------------------ #

    @property
    def tokens(self) -> TokenPair:
        return self._tokens

    def set_tokens(self, access_token: str, refresh_token: str | None = None) -> None:
        """Store a token pair, typically right after login."""
        self._tokens = TokenPair(access_token=access_token, refresh_token=refresh_token)
        self._expired = False

    def clear_tokens(self) -> None:
        self._tokens = TokenPair()

    def current_identity(self) -> IdentityClaim | None:
        """Return the identity in the access token, for display only."""
        if self._tokens.access_token is None:
            return None
        return decode_unverified(self._tokens.access_token)

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def authorized_fetch(self, method: str, url: httpx.URL | str, **kwargs: Any) -> httpx.Response:
        """
        Send a request with the bearer token, refreshing once on ``401``.

        :returns: The first response when it is not ``401``; the retry's
            response after a successful refresh; the original ``401`` when the
            refresh failed (tokens are cleared in that case).
        :raises httpx.HTTPError: For transport failures of the initial request
            or of the retry (a retry timeout is treated as a failed refresh).
        """
        if self._is_refresh_url(url):
            return await self._client.request(method, url, **kwargs)

        sent_with = self._tokens.access_token
        response = await self._send(method, url, sent_with, kwargs)
        if response.status_code != httpx.codes.UNAUTHORIZED:
            return response

        current = self._tokens.access_token
        if current is not None and current != sent_with:
            # Another caller refreshed while this request was in flight.
            log.debug("client.retry_with_current_token url=%s", url)
        elif not await self._refresh_once():
            return response

        try:
            return await self._send(method, url, self._tokens.access_token, kwargs)
        except httpx.TimeoutException:
            log.warning("client.retry_timeout url=%s", url)
            self._expire_session()
            return response

    async def logout(self) -> None:
        """Revoke the refresh token server-side and forget both tokens."""
        refresh_token = self._tokens.refresh_token
        self.clear_tokens()
        if not refresh_token:
            return
        try:
            await self._client.post(
                self.logout_path,
                json={"refreshToken": refresh_token},
                timeout=self.request_timeout,
            )
        except httpx.HTTPError as exc:
            log.info("client.logout_unreachable error=%s", type(exc).__name__)

    async def _send(
        self,
        method: str,
        url: httpx.URL | str,
        access_token: str | None,
        kwargs: dict[str, Any],
    ) -> httpx.Response:
        options = dict(kwargs)
        headers = httpx.Headers(options.pop("headers", None))
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        options.setdefault("timeout", self.request_timeout)
        return await self._client.request(method, url, headers=headers, **options)

    def _is_refresh_url(self, url: httpx.URL | str) -> bool:
        return httpx.URL(str(url)).path.rstrip("/") == self.refresh_path.rstrip("/")

    # ------------------------------------------------------------------ #
    # Single-flight refresh
    # ------------------------------------------------------------------ #

    async def _refresh_once(self) -> bool:
        if self._expired:
            # Late 401s after a failed refresh share its outcome.
            return False
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(self._refresh())
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> bool:
        refresh_token = self._tokens.refresh_token
        if not refresh_token:
            self._expire_session()
            return False

        self.refresh_count += 1
        try:
            response = await self._client.post(
                self.refresh_path,
                json={"refreshToken": refresh_token},
                timeout=self.refresh_timeout,
            )
        except httpx.HTTPError as exc:
            log.warning("client.refresh_failed reason=%s", type(exc).__name__)
            self._expire_session()
            return False

        if not response.is_success:
            log.info("client.refresh_failed reason=status_%s", response.status_code)
            self._expire_session()
            return False

        try:
            payload = response.json()
        except ValueError:
            payload = None
        access_token = payload.get("accessToken") if isinstance(payload, dict) else None
        if not isinstance(access_token, str) or not access_token:
            log.warning("client.refresh_failed reason=malformed_body")
            self._expire_session()
            return False

        # No refreshToken in the body means the server did not rotate it.
        rotated = payload.get("refreshToken")
        self._tokens = TokenPair(
            access_token=access_token,
            refresh_token=rotated if isinstance(rotated, str) and rotated else refresh_token,
        )
        return True

    def _expire_session(self) -> None:
        self.clear_tokens()
        if self._expired:
            return
        self._expired = True
        if self._on_session_expired is not None:
            self._on_session_expired()
