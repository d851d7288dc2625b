"""In-Memory Rate Limiter

Fixed-window request counter kept in process memory. Suitable for a single
worker process; multi-process deployments need a shared store.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple
from config import ApplicationConfig
from src.app.services.rate_limiter import RateLimiter, RateLimitUsage

logger = logging.getLogger(__name__)


class InMemoryRateLimiter(RateLimiter):
    """
    Fixed-window rate limiter

    Each identity gets `limit` requests per `window_seconds`, counted from
    its first request in the window.
    """

    def __init__(
        self,
        limit: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.limit = int(limit if limit is not None else ApplicationConfig.RATE_LIMIT_DEFAULT)
        self.window_seconds = int(
            window_seconds if window_seconds is not None else ApplicationConfig.RATE_LIMIT_WINDOW_SECONDS
        )
        self.clock = clock
        # identity -> (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_pruned = clock()

    def _current_window(self, identity: str) -> Optional[Tuple[float, int]]:
        window = self._windows.get(identity)
        if window is None:
            return None
        if self.clock() - window[0] >= self.window_seconds:
            del self._windows[identity]
            return None
        return window

    def _prune(self) -> None:
        """Drop expired windows, at most once per window length"""
        now = self.clock()
        if now - self._last_pruned < self.window_seconds:
            return
        self._last_pruned = now
        expired = [
            identity
            for identity, (started_at, _) in self._windows.items()
            if now - started_at >= self.window_seconds
        ]
        for identity in expired:
            del self._windows[identity]

    def is_allowed(self, identity: str) -> bool:
        self._prune()
        window = self._current_window(identity)
        if window is None:
            self._windows[identity] = (self.clock(), 1)
            return True

        started_at, count = window
        if count >= self.limit:
            logger.warning(f"Rate limit exceeded for {identity[:24]}")
            return False

        self._windows[identity] = (started_at, count + 1)
        return True

    def current_usage(self, identity: str) -> RateLimitUsage:
        window = self._current_window(identity)
        if window is None:
            started_at, count = self.clock(), 0
        else:
            started_at, count = window

        return RateLimitUsage(
            count=count,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_at=datetime.utcfromtimestamp(started_at + self.window_seconds),
        )

    def reset(self, identity: str) -> bool:
        return self._windows.pop(identity, None) is not None
