"""One-time signup verification code registry.

Two backends share the ``OTPStore`` interface:

* ``InMemoryOTPStore`` keeps entries in a process-local dict. Entries are lost
  on restart and are invisible to other worker processes, so a deployment with
  more than one process must use the Redis backend. Expired entries are only
  removed when checked or overwritten; there is no background sweep.
* ``RedisOTPStore`` keeps entries in Redis under ``otp:<email>`` with a TTL, so
  every instance sees the same codes.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OTPEntry:
    code: str
    expires_at: float  # epoch seconds

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class OTPStore(Protocol):
    """Keyed, TTL-bearing code registry."""

    def issue(self, email: str, code: str, ttl_seconds: int) -> OTPEntry: ...

    def get(self, email: str) -> Optional[OTPEntry]: ...

    def delete(self, email: str) -> None: ...

    def now(self) -> float: ...


class InMemoryOTPStore:
    """Single-process OTP registry suitable for single-node deployments."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, OTPEntry] = {}

    def now(self) -> float:
        return self._clock()

    def issue(self, email: str, code: str, ttl_seconds: int) -> OTPEntry:
        entry = OTPEntry(code=code, expires_at=self._clock() + ttl_seconds)
        with self._lock:
            self._entries[email] = entry
        return entry

    def get(self, email: str) -> Optional[OTPEntry]:
        with self._lock:
            return self._entries.get(email)

    def delete(self, email: str) -> None:
        with self._lock:
            self._entries.pop(email, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisOTPStore:
    """Shared OTP registry for multi-instance deployments."""

    KEY_PREFIX = "otp:"

    def __init__(self, client: Any, clock: Callable[[], float] = time.time) -> None:
        self._client = client
        self._clock = clock

    def _key(self, email: str) -> str:
        return f"{self.KEY_PREFIX}{email}"

    def now(self) -> float:
        return self._clock()

    def issue(self, email: str, code: str, ttl_seconds: int) -> OTPEntry:
        entry = OTPEntry(code=code, expires_at=self._clock() + ttl_seconds)
        payload = json.dumps({"code": entry.code, "expires_at": entry.expires_at})
        self._client.set(self._key(email), payload, ex=ttl_seconds)
        return entry

    def get(self, email: str) -> Optional[OTPEntry]:
        raw = self._client.get(self._key(email))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            return OTPEntry(code=str(data["code"]), expires_at=float(data["expires_at"]))
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable OTP entry for %s", email)
            self.delete(email)
            return None

    def delete(self, email: str) -> None:
        self._client.delete(self._key(email))


def build_otp_store() -> OTPStore:
    """Create the OTP registry selected by ``OTP_STORE_BACKEND``."""
    if settings.OTP_STORE_BACKEND == "redis":
        import redis

        client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("OTP registry backend: redis (%s)", settings.REDIS_URL)
        return RedisOTPStore(client)

    logger.info("OTP registry backend: in-memory (single process only)")
    return InMemoryOTPStore()


otp_store: OTPStore = build_otp_store()
