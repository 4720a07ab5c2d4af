# ------------------------------------------------------------------------
# File: rate_limit.py
# Location: kontrak/core/rate_limit.py
# Description:
#     Fixed-window request counter keyed by client identity (remote IP).
#     The table of tracked clients is bounded: when it is full, expired
#     windows are swept first and the window closest to reset is evicted
#     if that is not enough.
# ------------------------------------------------------------------------

import threading
import time
from dataclasses import dataclass


@dataclass
class WindowState:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    def __init__(self, max_requests: int = 100, window_seconds: float = 900,
                 max_clients: int = 10000, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._clock = clock
        self._windows = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._windows)

    def sweep(self, now: float = None) -> int:
        """Drop every window that has already reset. Returns how many were removed."""
        now = self._clock() if now is None else now
        with self._lock:
            return self._sweep(now)

    def _sweep(self, now: float) -> int:
        stale = [key for key, state in self._windows.items() if now > state.reset_at]
        for key in stale:
            del self._windows[key]
        return len(stale)

    def _make_room(self, now: float) -> None:
        if len(self._windows) < self.max_clients:
            return
        self._sweep(now)
        while len(self._windows) >= self.max_clients:
            oldest = min(self._windows, key=lambda key: self._windows[key].reset_at)
            del self._windows[oldest]

    def allow(self, key: str) -> bool:
        """Count one request for ``key``; False once the window's quota is used up."""
        now = self._clock()
        with self._lock:
            state = self._windows.get(key)
            if state is None or now > state.reset_at:
                if state is None:
                    self._make_room(now)
                self._windows[key] = WindowState(count=1, reset_at=now + self.window_seconds)
                return True

            if state.count >= self.max_requests:
                return False

            state.count += 1
            return True
