"""In-memory rate limiting for the unauthenticated auth endpoints."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import Request

from app.core.exceptions import RateLimitExceededError


class InMemoryRateLimiter:
    """Sliding-window limiter; per process, like the in-memory OTP registry."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: Dict[str, Deque[float]] = {}

    def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        now = self._clock()
        cutoff = now - window_seconds

        with self._lock:
            bucket = self._buckets.setdefault(key, deque())
            while bucket and bucket[0] < cutoff:
                bucket.popleft()

            if len(bucket) >= limit:
                return False

            bucket.append(now)
            return True

    def enforce(
        self,
        request: Request,
        scope: str,
        per_minute: int,
        per_hour: int,
        identity: Optional[str] = None,
    ) -> None:
        """Raise 429 when the caller exceeds either window for ``scope``."""
        client_ip = request.client.host if request.client else "unknown"
        key = f"{scope}:{client_ip}"
        if identity:
            key = f"{key}:{identity}"
        if not self.allow(f"{key}:min", per_minute, 60):
            raise RateLimitExceededError(f"Too many {scope} attempts. Please wait a minute.")
        if not self.allow(f"{key}:hour", per_hour, 3600):
            raise RateLimitExceededError(f"Too many {scope} attempts. Please try again later.")

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


rate_limiter = InMemoryRateLimiter()
