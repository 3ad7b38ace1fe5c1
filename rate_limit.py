"""Sliding-window request limiter.

Each key keeps a log of the timestamps of its accepted calls. A call is
accepted while fewer than ``limit`` timestamps fall inside the last
``window`` seconds; rejected calls are not logged, so a client that keeps
hammering the endpoint gets through again as soon as its oldest accepted
call ages out.
"""
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    retry_after: float = 0.0


class SlidingWindowLimiter:
    def __init__(self, name: str, limit: int, window: float, clock: Callable[[], float] = time.monotonic):
        if limit < 1 or window <= 0:
            raise ValueError(f"{name}: limit and window must be positive")
        self.name = name
        self.limit = limit
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)

    def _trim(self, hits: Deque[float], now: float):
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            hits = self._hits[key]
            self._trim(hits, now)
            if len(hits) >= self.limit:
                retry_after = max(hits[0] + self.window - now, 0.0)
                return RateLimitResult(False, self.limit, 0, retry_after)
            hits.append(now)
            return RateLimitResult(True, self.limit, self.limit - len(hits))

    def purge(self, now: Optional[float] = None) -> int:
        """Forget keys with no calls left in the window."""
        now = self._clock() if now is None else now
        with self._lock:
            for hits in self._hits.values():
                self._trim(hits, now)
            empty = [key for key, hits in self._hits.items() if not hits]
            for key in empty:
                del self._hits[key]
        return len(empty)

    def __len__(self) -> int:
        return len(self._hits)
