# comments in English; reST docstrings
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from vidnest.services._shared.dto import IdentityClaim
from vidnest.services._shared.ports import RefreshRecord, RefreshTokenRegistry

log = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 60 * 60  # seconds


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryRefreshTokenRegistry(RefreshTokenRegistry):
    """
    Process-wide, lock-guarded refresh token registry.

    Expired records are removed two ways: lazily whenever ``verify`` finds
    one, and by a background sweep started on the first ``store`` call.
    Nothing survives a process restart.

    :param sweep_interval: Seconds between two periodic sweeps.
    :param clock: Returns the current aware UTC datetime.
    """

    def __init__(
        self,
        *,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._records: dict[str, RefreshRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock or _utcnow
        self._sweep_interval = sweep_interval
        self._sweeper: threading.Thread | None = None
        self._stopped = threading.Event()

    # -------------------------- API ----------------------------

    def store(self, token: str, claim: IdentityClaim, ttl: timedelta) -> RefreshRecord:
        now = self._clock()
        record = RefreshRecord(
            refresh_token=token,
            claim=claim,
            created_at=now,
            expires_at=now + ttl,
        )
        with self._lock:
            self._records[token] = record
        self._ensure_sweeper()
        return record

    def verify(self, token: str) -> RefreshRecord | None:
        now = self._clock()
        with self._lock:
            record = self._records.get(token)
            if record is None:
                return None
            if record.expires_at < now:
                del self._records[token]
                return None
            return record

    def revoke(self, token: str) -> None:
        with self._lock:
            self._records.pop(token, None)

    def revoke_all_for_identity(self, username: str | None = None) -> int:
        with self._lock:
            if username:
                doomed = [t for t, r in self._records.items() if r.username == username]
            else:
                doomed = [t for t, r in self._records.items() if r.claim.kind == "local"]
            for token in doomed:
                del self._records[token]
        return len(doomed)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    # ----------------------- eviction --------------------------

    def sweep(self) -> int:
        """
        Delete every expired record.

        :returns: Number of records removed.
        """
        now = self._clock()
        with self._lock:
            expired = [t for t, r in self._records.items() if r.expires_at < now]
            for token in expired:
                del self._records[token]
        if expired:
            log.debug("refresh_registry.sweep removed=%s", len(expired))
        return len(expired)

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def _ensure_sweeper(self) -> None:
        with self._lock:
            if self._sweeper is not None or self._stopped.is_set():
                return
            self._sweeper = threading.Thread(
                target=self._run_sweeper,
                name="refresh-registry-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    def _run_sweeper(self) -> None:
        while not self._stopped.wait(self._sweep_interval):
            self.sweep()

    def close(self, timeout: float | None = 5.0) -> None:
        """Stop the periodic sweep and wait for its thread to exit."""
        self._stopped.set()
        sweeper = self._sweeper
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout)
