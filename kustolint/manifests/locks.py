"""Per-key build locks serializing renders that share a base directory."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional


class LockTimeoutError(TimeoutError):
    """Raised when a build lock cannot be acquired within the timeout."""

    def __init__(self, key: str, timeout: float) -> None:
        super().__init__(f"timed out after {timeout:g}s waiting for build lock on {key}")
        self.key = key
        self.timeout = timeout


class KeyedLock:
    """Spin-acquired mutual exclusion keyed by canonical base path.

    Waiters poll on a fixed interval, so there is no ordering among them. A
    ``timeout`` of ``None`` waits forever.
    """

    def __init__(
        self,
        *,
        poll_interval: float = 0.1,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def acquire(self, key: str) -> None:
        lock = self._lock_for(key)
        deadline = None if self.timeout is None else self._clock() + self.timeout
        while not lock.acquire(blocking=False):
            if deadline is not None and self._clock() >= deadline:
                raise LockTimeoutError(key, self.timeout or 0.0)
            self._sleep(self.poll_interval)

    def release(self, key: str) -> None:
        self._lock_for(key).release()

    def locked(self, key: str) -> bool:
        return self._lock_for(key).locked()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        self.acquire(key)
        try:
            yield
        finally:
            self.release(key)


__all__ = ["KeyedLock", "LockTimeoutError"]
