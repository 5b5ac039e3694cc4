"""
In-process response cache with per-entry expiration timers.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional, TYPE_CHECKING

from shared.config import DEFAULT_CACHE_TTL_SECONDS
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


@dataclass
class CacheEntry:
    """A stored payload and the timer that will expire it."""

    value: str
    expires_at: float
    timer: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        if self.timer is not None:
            self.timer.cancel()


class CacheStore:
    """Key/value store whose entries delete themselves after a TTL.

    All operations run on the event loop thread, so no locking is needed.
    Expiry is driven by ``loop.call_later``: the timer of an overwritten or
    deleted entry is cancelled, and a timer only ever removes the entry that
    armed it.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.metrics = metrics
        self.logger = get_logger("sheets.cache")
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._expirations = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def keys(self) -> List[str]:
        return list(self._entries)

    def has(self, key: str) -> bool:
        """Return True if an entry currently exists for ``key``."""
        return key in self._entries

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when there is no entry."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            self._record("miss")
            return None

        self._hits += 1
        self._record("hit")
        return entry.value

    def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key`` and arm its expiration.

        Must be called from a coroutine or callback running on the event loop.
        """
        loop = asyncio.get_running_loop()
        ttl = self.ttl_seconds if ttl is None else ttl

        previous = self._entries.pop(key, None)
        if previous is not None:
            previous.cancel()

        entry = CacheEntry(value=value, expires_at=loop.time() + ttl)
        entry.timer = loop.call_later(ttl, self._expire, key, entry)
        self._entries[key] = entry

        self.logger.debug("Cache stored", key=key, ttl=ttl, replaced=previous is not None)
        self._record("store")

    def delete(self, key: str) -> bool:
        """Remove the entry for ``key``. Returns whether one existed."""
        entry = self._entries.pop(key, None)
        if entry is None:
            return False

        entry.cancel()
        self.logger.debug("Cache deleted", key=key)
        self._record("delete")
        return True

    def clear(self) -> int:
        """Drop every entry and cancel every pending timer."""
        count = len(self._entries)
        for entry in self._entries.values():
            entry.cancel()
        self._entries.clear()

        if count:
            self.logger.info("Cache cleared", entries=count)
            self._record("clear")
        return count

    def stats(self) -> Dict[str, int]:
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "expirations": self._expirations,
        }

    def _expire(self, key: str, entry: CacheEntry) -> None:
        if self._entries.get(key) is not entry:
            return

        del self._entries[key]
        self._expirations += 1
        self.logger.info("Cache expired", key=key)
        self._record("expire")

    def _record(self, event: str) -> None:
        if self.metrics:
            self.metrics.record_cache_event(event, entries=len(self._entries))
