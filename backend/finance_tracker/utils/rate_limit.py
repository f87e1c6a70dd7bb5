import time
from collections import deque
from threading import Lock
from typing import Optional

from fastapi import Request

_MAX_BUCKETS = 50_000


class SlidingWindowRateLimiter:
    """In-process limiter: at most *limit* hits per key within *window_seconds*."""

    def __init__(self, *, max_buckets: int = _MAX_BUCKETS) -> None:
        self._buckets: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._max_buckets = max_buckets

    def allow(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        if limit <= 0 or window_seconds <= 0:
            return True, 0
        now = time.monotonic()
        cutoff = now - window_seconds
        with self._lock:
            if len(self._buckets) > self._max_buckets:
                self._prune(cutoff)
            bucket = self._buckets.setdefault(key, deque())
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) >= limit:
                return False, len(bucket)
            bucket.append(now)
            return True, len(bucket)

    def _prune(self, cutoff: float) -> None:
        for key in [k for k, bucket in self._buckets.items() if not bucket or bucket[-1] <= cutoff]:
            del self._buckets[key]

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


rate_limiter = SlidingWindowRateLimiter()


def get_client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None
