"""Sliding-window request limiter for outbound API calls."""
from __future__ import annotations

import time
from collections import deque
from typing import Callable

from nejobs.log import get_logger

log = get_logger(__name__)


class RateLimiter:
    """Allow at most ``max_requests`` calls within a trailing ``window`` (seconds)."""

    def __init__(
        self,
        max_requests: int = 10,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._log: deque[float] = deque()

    def _prune(self, now: float) -> None:
        window_start = now - self.window
        while self._log and self._log[0] < window_start:
            self._log.popleft()

    def allow(self) -> bool:
        self._prune(self._clock())
        if len(self._log) < self.max_requests:
            return True
        log.debug("Rate limit denied: %d calls in the last %.0fs", len(self._log), self.window)
        return False

    def record(self) -> None:
        now = self._clock()
        self._prune(now)
        self._log.append(now)

    @property
    def remaining(self) -> int:
        self._prune(self._clock())
        return max(self.max_requests - len(self._log), 0)

    def retry_after(self) -> float:
        """Seconds until a new call would be allowed (0 when allowed now)."""
        now = self._clock()
        self._prune(now)
        if len(self._log) < self.max_requests:
            return 0.0
        return max(self._log[0] + self.window - now, 0.0)

    def reset(self) -> None:
        self._log.clear()
