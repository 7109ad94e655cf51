"""
Diagnostic Replay Store

Key-value persistence for raw sample dumps. The sample buffer rewrites its
whole sequence after every append so a session can be replayed offline.
Nothing here is on the decision path: every backend failure is logged and
swallowed.

Key Schema:
    {diagnostics_key}:{session_id}  → JSON list of samples
"""

from __future__ import annotations

import logging
import os
import time
from typing import Callable, Dict, List, Optional, Protocol, Tuple

import redis
from redis.exceptions import RedisError

from .connection import get_redis_client


logger = logging.getLogger(__name__)


class DiagnosticStore(Protocol):
    """Minimal interface the sample buffer writes through."""

    def save(self, key: str, value: str) -> None: ...

    def load(self, key: str) -> Optional[str]: ...

    def clear(self, key: str) -> None: ...


# =============================================================================
# In-Memory Backend
# =============================================================================

class InMemoryDiagnosticStore:
    """
    Dict-backed store for tests and deployments without Redis.

    Mirrors the Redis backend's sliding TTL: each save pushes the entry's
    expiry ttl_seconds into the future. Expired entries are never returned
    and are swept from memory at most once per PURGE_INTERVAL seconds.
    ttl_seconds=None keeps entries until cleared.
    """

    PURGE_INTERVAL = 1.0

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._next_purge = clock() + self.PURGE_INTERVAL

    def save(self, key: str, value: str) -> None:
        now = self._clock()
        expires_at = now + self.ttl_seconds if self.ttl_seconds is not None else None
        self._data[key] = (value, expires_at)
        if now >= self._next_purge:
            self._purge_expired(now)

    def load(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)
        logger.debug(f"Diagnostic data cleared for {key}")

    def keys(self) -> List[str]:
        self._purge_expired(self._clock())
        return list(self._data)

    def _purge_expired(self, now: float) -> None:
        expired = [
            key for key, (_, expires_at) in self._data.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._data[key]
        self._next_purge = now + self.PURGE_INTERVAL
        if expired:
            logger.debug(f"Expired {len(expired)} diagnostic entries")


# =============================================================================
# Redis Backend
# =============================================================================

class RedisDiagnosticStore:
    """
    Redis-backed store with a sliding TTL.

    Each save is a SETEX, so a dump lives DIAGNOSTICS_TTL seconds after the
    last sample of its session.
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        ttl_seconds: int = 1800
    ) -> None:
        self.client = client if client is not None else get_redis_client()
        self.ttl_seconds = ttl_seconds

    def save(self, key: str, value: str) -> None:
        try:
            self.client.setex(key, self.ttl_seconds, value)
        except RedisError as e:
            logger.error(f"Failed to save diagnostic data {key}: {e}")

    def load(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except RedisError as e:
            logger.error(f"Failed to load diagnostic data {key}: {e}")
            return None

    def clear(self, key: str) -> None:
        try:
            self.client.delete(key)
            logger.info(f"Diagnostic data cleared for {key}")
        except RedisError as e:
            logger.error(f"Failed to clear diagnostic data {key}: {e}")


def get_diagnostic_store(ttl_seconds: int = 1800) -> DiagnosticStore:
    """
    Pick a backend from the environment.

    Redis is used when REDIS_HOST is set; otherwise samples are kept in
    process memory.
    """
    if os.getenv("REDIS_HOST"):
        return RedisDiagnosticStore(ttl_seconds=ttl_seconds)
    logger.warning("REDIS_HOST not configured, diagnostic data kept in memory")
    return InMemoryDiagnosticStore(ttl_seconds=ttl_seconds)
