"""
In-memory TTL cache for provider lookups.

Providers share expensive lookups (news by organization, people by
organization, embeddings by text) across candidates of the same run.
The cache is injected, never global, so tests can pass a fresh one.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached value with its expiry."""
    value: Any
    created_at: datetime
    expires_at: datetime
    hits: int = 0

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) > self.expires_at

    def age_seconds(self) -> float:
        return (datetime.utcnow() - self.created_at).total_seconds()


class TTLCache:
    """
    Bounded cache with per-entry time-to-live.

    When full, expired entries are purged first; if still full the
    oldest entry is evicted.
    """

    DEFAULT_TTL_SECONDS = 3600
    DEFAULT_MAX_ENTRIES = 1000

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_entries = max_entries
        self._clock = clock or datetime.utcnow
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
        }

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._stats["misses"] += 1
                return None

            entry.hits += 1
            self._stats["hits"] += 1
            return entry.value

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                self._evict(now)
            self._entries[key] = CacheEntry(
                value=value,
                created_at=now,
                expires_at=now + self._ttl,
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self, now: datetime) -> None:
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        self._stats["evictions"] += len(expired)

        if len(self._entries) >= self._max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].created_at)
            del self._entries[oldest]
            self._stats["evictions"] += 1

        logger.debug(f"Cache eviction: {len(self._entries)} entries remain")

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            return {
                **self._stats,
                "size": len(self._entries),
                "hit_rate": self._stats["hits"] / total if total else 0.0,
            }
