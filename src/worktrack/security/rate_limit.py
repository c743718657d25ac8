"""Fixed-window rate limiting over an injected counter store.

The store is passed in rather than kept at module level, so tests can reset
it and a multi-process deployment can back it with a shared cache.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Protocol


@dataclass
class RateWindow:
    count: int
    reset_at: float


class RateLimitStore(Protocol):
    def hit(self, key: str, window_seconds: float) -> int:
        """Count one attempt and return the attempts so far in the current window.

        Starting a fresh window and incrementing an open one must be a single
        atomic step.
        """
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local fixed-window counters guarded by one lock."""

    def __init__(self, *, monotonic: Callable[[], float] = time.monotonic):
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._windows: dict[str, RateWindow] = {}

    def hit(self, key: str, window_seconds: float) -> int:
        with self._lock:
            now = self._monotonic()
            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                window = RateWindow(count=0, reset_at=now + window_seconds)
                self._windows[key] = window
            window.count += 1
            return window.count

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


class RateLimiter:
    def __init__(self, store: RateLimitStore):
        self._store = store

    def check(self, key: str, max_attempts: int, window_seconds: float) -> bool:
        """Count one attempt for ``key``; False once the window is exhausted."""
        return self._store.hit(key, window_seconds) <= max_attempts
