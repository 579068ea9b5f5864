"""Sliding-window rate limiting for upstream providers."""

import asyncio
import logging
import threading
import time
from collections import deque
from typing import Callable

from ..core.models import RateCheck, RateLimitStatus

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class RateLimiter:
    """Bounds requests per provider key inside a trailing time window.

    Each provider key owns its own window of request timestamps. Stale
    entries are purged lazily on every check. Check-then-record runs under
    a lock that is never held across an ``await``, so two callers can never
    both see the last free slot.
    """

    def __init__(
        self,
        limit: int = 290,
        window_ms: float = 60_000,
        buffer_ms: float = 100,
        clock: Callable[[], float] = _monotonic_ms,
    ):
        """
        Initialize the rate limiter.

        Args:
            limit: Maximum requests allowed inside one window
            window_ms: Window length in milliseconds
            buffer_ms: Extra sleep added after a computed wait
            clock: Millisecond clock, injectable for tests
        """
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.limit = limit
        self.window_ms = window_ms
        self.buffer_ms = buffer_ms
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def _purge(self, key: str, now: float) -> deque[float]:
        window = self._windows.setdefault(key, deque())
        while window and now - window[0] >= self.window_ms:
            window.popleft()
        return window

    def check(self, key: str) -> RateCheck:
        """Report capacity for ``key`` without recording anything."""
        with self._lock:
            return self._check_locked(key, self._clock())

    def _check_locked(self, key: str, now: float) -> RateCheck:
        window = self._purge(key, now)
        if len(window) < self.limit:
            return RateCheck(allowed=True, wait_ms=0)
        wait_ms = self.window_ms - (now - window[0])
        return RateCheck(allowed=False, wait_ms=max(wait_ms, 0))

    def check_and_record(self, key: str) -> RateCheck:
        """Take a slot for ``key`` if one is free.

        Returns:
            RateCheck with ``allowed=True`` when a timestamp was recorded,
            otherwise ``allowed=False`` and the time until the oldest entry
            leaves the window.
        """
        with self._lock:
            now = self._clock()
            result = self._check_locked(key, now)
            if result.allowed:
                self._windows[key].append(now)
            return result

    def record_now(self, key: str) -> None:
        """Record a request for ``key`` unconditionally."""
        with self._lock:
            now = self._clock()
            self._purge(key, now).append(now)

    async def wait_then_record(self, key: str) -> None:
        """Suspend until ``key`` has capacity, then record the request."""
        while True:
            result = self.check_and_record(key)
            if result.allowed:
                return
            logger.warning(
                f"[RateLimiter] {key} rate limit reached. "
                f"Waiting {result.wait_ms / 1000:.1f}s..."
            )
            await asyncio.sleep((result.wait_ms + self.buffer_ms) / 1000)

    def status(self, key: str) -> RateLimitStatus:
        """Current usage of one provider's window."""
        with self._lock:
            current = len(self._purge(key, self._clock()))
        return RateLimitStatus(
            current=current,
            limit=self.limit,
            remaining=max(self.limit - current, 0),
            window_ms=self.window_ms,
        )

    def status_all(self) -> dict[str, RateLimitStatus]:
        """Usage of every provider key seen so far."""
        with self._lock:
            keys = list(self._windows)
        return {key: self.status(key) for key in keys}

    def register(self, key: str) -> None:
        """Make ``key`` visible in status output before its first request."""
        with self._lock:
            self._windows.setdefault(key, deque())

    def reset(self, key: str | None = None) -> None:
        """Forget recorded requests for one key, or for all of them."""
        with self._lock:
            if key is None:
                for window in self._windows.values():
                    window.clear()
            elif key in self._windows:
                self._windows[key].clear()
