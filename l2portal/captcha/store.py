"""In-memory key -> value store with per-entry TTL and single-use reads."""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from l2portal.core.lifecycle import WorkerLifecycle, WorkerState

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 60.0


@dataclass
class _Entry:
    value: Any
    inserted_at: float
    expires_at: float


class ExpiringTokenStore:
    """Thread-safe TTL store. take() removes what it returns.

    One lock guards the dict; every critical section is a dict operation, so
    callers on different keys only contend for that long. Expired entries are
    refused by take() immediately and physically removed by sweep(), which
    run_sweeper() calls periodically.

    clock must be monotonic; tests pass a manual clock to simulate time.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, _Entry] = {}
        self._lifecycle = WorkerLifecycle("token_sweeper")
        self._sweep_task: Optional[asyncio.Task] = None

    def put(self, key: str, value: Any, ttl: float) -> None:
        """Insert or overwrite key. ttl in seconds."""
        if value is None:
            raise ValueError("value must not be None")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        now = self._clock()
        with self._lock:
            self._entries[key] = _Entry(value=value, inserted_at=now, expires_at=now + ttl)

    def take(self, key: str) -> Optional[Any]:
        """Return and remove the value for key, or None if absent, already taken or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None or now >= entry.expires_at:
            return None
        return entry.value

    def sweep(self) -> int:
        """Remove all expired entries. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for k in expired:
                del self._entries[k]
        if expired:
            logger.debug("Swept %s expired token(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        """True if key is physically stored, expired or not. Does not consume it."""
        with self._lock:
            return key in self._entries

    # --- Background sweep ---

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        """Start the periodic sweep task, again after stop_sweeper too. Needs a running loop."""
        if not self._lifecycle.restart():
            return
        self._sweep_task = asyncio.create_task(self.run_sweeper(interval), name="token_sweeper")

    async def run_sweeper(self, interval: float, sleep: Callable[[float], Any] = asyncio.sleep) -> None:
        """Sweep every interval seconds while the sweeper is running."""
        while self._lifecycle.is_running():
            await sleep(interval)
            try:
                self.sweep()
            except Exception as e:
                logger.warning("Token sweep failed: %s", e, exc_info=True)

    async def stop_sweeper(self) -> None:
        if not self._lifecycle.request_stop():
            return
        task = self._sweep_task
        self._sweep_task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._lifecycle.current == WorkerState.STOPPING:
            self._lifecycle.transition(WorkerState.STOPPED)
