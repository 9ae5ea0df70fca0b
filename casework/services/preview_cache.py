"""TTL-bounded cache of NDA signing sessions, plus the periodic sweeper."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable

from casework.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_TTL = timedelta(minutes=10)


@dataclass(frozen=True)
class SigningSession:
    """Pending preview for one case manager. Lives only in memory."""

    case_manager_pin: str
    case_manager_name: str
    preview_path: Path
    signature_data: bytes = field(repr=False)
    created_at: datetime


EvictCallback = Callable[[SigningSession], None]


class PreviewCache:
    """
    Signing sessions keyed by case manager pin.

    At most one session per pin: a later put replaces the earlier one. A
    session older than the TTL is treated as absent even before the sweeper
    removes it. All mutations happen under one lock; eviction callbacks run
    after the lock is released.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_PREVIEW_TTL,
        on_evict: EvictCallback | None = None,
    ):
        self._ttl = ttl
        self._on_evict = on_evict
        self._sessions: dict[str, SigningSession] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def is_expired(self, session: SigningSession, now: datetime) -> bool:
        return now - session.created_at > self._ttl

    def put(self, session: SigningSession) -> None:
        with self._lock:
            replaced = self._sessions.get(session.case_manager_pin)
            self._sessions[session.case_manager_pin] = session
        if replaced is not None and replaced.preview_path != session.preview_path:
            self._evict(replaced)

    def get(self, pin: str, now: datetime) -> SigningSession | None:
        with self._lock:
            session = self._sessions.get(pin)
            if session is None or not self.is_expired(session, now):
                return session
            del self._sessions[pin]
        self._evict(session)
        return None

    def delete(self, pin: str, expected: SigningSession | None = None) -> bool:
        """Remove a session. With `expected`, only remove if it is still the live one."""
        with self._lock:
            session = self._sessions.get(pin)
            if session is None or (expected is not None and session is not expected):
                return False
            del self._sessions[pin]
        self._evict(session)
        return True

    def sweep_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [s for s in self._sessions.values() if self.is_expired(s, now)]
            for session in expired:
                del self._sessions[session.case_manager_pin]
        for session in expired:
            logger.info("Cleaned up expired NDA preview for %s", session.case_manager_pin)
            self._evict(session)
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict(self, session: SigningSession) -> None:
        if self._on_evict is None:
            return
        try:
            self._on_evict(session)
        except OSError:
            logger.warning(
                "Failed to clean up preview artifact for %s", session.case_manager_pin
            )


class PreviewSweeper:
    """Runs PreviewCache.sweep_expired on a fixed interval in a daemon thread."""

    def __init__(
        self,
        cache: PreviewCache,
        interval_seconds: float = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._cache = cache
        self._interval = interval_seconds
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def run_once(self) -> int:
        return self._cache.sweep_expired(self._clock())

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="nda-preview-sweeper", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("NDA preview sweep failed")
