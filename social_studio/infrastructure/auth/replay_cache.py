"""
One-time code replay caches.

A TOTP code stays valid for the whole acceptance window. These caches
remember accepted codes for that long so the same code cannot be used
twice against the same secret.
"""

import logging
import threading
import time

import redis

logger = logging.getLogger(__name__)


class InMemoryUsedCodeCache:
    """Process-local used-code cache."""

    def __init__(self) -> None:
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()

    def mark_used(self, key: str, ttl_seconds: int) -> bool:
        now = time.monotonic()
        with self._lock:
            self._purge(now)
            if key in self._entries:
                return False
            self._entries[key] = now + ttl_seconds
            return True

    def _purge(self, now: float) -> None:
        expired = [k for k, expires in self._entries.items() if expires <= now]
        for k in expired:
            del self._entries[k]

    def __len__(self) -> int:
        with self._lock:
            self._purge(time.monotonic())
            return len(self._entries)


class RedisUsedCodeCache:
    """Used-code cache shared by every worker through Redis."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = "social-studio") -> None:
        self.redis = redis_client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, redis_url: str, key_prefix: str = "social-studio") -> "RedisUsedCodeCache":
        client = redis.from_url(redis_url, decode_responses=True)
        return cls(client, key_prefix)

    def mark_used(self, key: str, ttl_seconds: int) -> bool:
        # SET NX is atomic, so two workers racing on one code get one winner
        stored = self.redis.set(f"{self.key_prefix}:totp:used:{key}", "1", nx=True, ex=ttl_seconds)
        return bool(stored)
