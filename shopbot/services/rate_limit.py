"""Per-sender request windows held in process memory."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable

from shopbot.services.exceptions import RateLimitExceeded

DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_REQUESTS = 30


@dataclass
class WindowState:
    count: int
    window_start: float


class SlidingWindowRateLimiter:
    """Count events per sender inside a window that restarts once it has elapsed.

    Read-check-increment for a sender runs under that sender's lock. State is
    not shared between processes and does not survive a restart.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, WindowState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_prune = clock()

    def _lock_for(self, sender: str) -> asyncio.Lock:
        lock = self._locks.get(sender)
        if lock is None:
            lock = self._locks.setdefault(sender, asyncio.Lock())
        return lock

    async def hit(self, sender: str) -> WindowState:
        """Record one event; raise ``RateLimitExceeded`` once the cap is passed."""

        async with self._lock_for(sender):
            now = self._clock()
            state = self._windows.get(sender)
            if state is None:
                state = WindowState(count=0, window_start=now)
                self._windows[sender] = state
            elif now - state.window_start > self.window_seconds:
                state.count = 0
                state.window_start = now

            state.count += 1
            if state.count > self.max_requests:
                raise RateLimitExceeded(
                    f"{sender} sent {state.count} requests in {self.window_seconds:g}s "
                    f"(limit {self.max_requests})."
                )
            return WindowState(count=state.count, window_start=state.window_start)

    async def allow(self, sender: str) -> bool:
        try:
            await self.hit(sender)
        except RateLimitExceeded:
            return False
        return True

    def snapshot(self, sender: str) -> WindowState | None:
        state = self._windows.get(sender)
        if state is None:
            return None
        return WindowState(count=state.count, window_start=state.window_start)

    def reset(self, sender: str | None = None) -> None:
        if sender is None:
            self._windows.clear()
            self._locks.clear()
            return
        self._windows.pop(sender, None)

    def prune(self) -> int:
        """Forget senders whose window is over; returns how many were dropped."""

        now = self._clock()
        stale = []
        for sender, state in self._windows.items():
            lock = self._locks.get(sender)
            if lock is not None and lock.locked():
                continue
            if now - state.window_start > self.window_seconds:
                stale.append(sender)
        for sender in stale:
            self._windows.pop(sender, None)
            self._locks.pop(sender, None)
        return len(stale)

    def maybe_prune(self) -> int:
        """Prune at most once per window so idle senders do not pile up."""

        now = self._clock()
        if now - self._last_prune < self.window_seconds:
            return 0
        self._last_prune = now
        return self.prune()


__all__ = ["SlidingWindowRateLimiter", "WindowState"]
