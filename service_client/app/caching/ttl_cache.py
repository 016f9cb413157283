"""
In-memory TTL cache for GET responses.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Set

from shared.logging import get_logger


DEFAULT_TTL_SECONDS = 300.0


def cache_key(method: str, endpoint: str) -> str:
    """Derive the cache key for a request."""
    return f"{method.upper()}_{endpoint}"


@dataclass(frozen=True)
class CacheEntry:
    """A cached response and the moment it was stored."""
    data: Any
    stored_at: float
    ttl: float
    tags: FrozenSet[str] = field(default_factory=frozenset)

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


class TTLCache:
    """Keyed store with lazy expiry, substring and tag invalidation.

    Expired entries are dropped when read; there is no background sweep and
    no capacity bound.
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._tag_index: Dict[str, Set[str]] = {}
        self._hits = 0
        self._misses = 0
        self._expired = 0
        self.logger = get_logger("client.cache")

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for ``key`` if it has not expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if not entry.is_fresh(self._clock()):
            self._remove(key)
            self._expired += 1
            self._misses += 1
            self.logger.debug("Cache entry expired", key=key)
            return None

        self._hits += 1
        return entry

    def set(self, key: str, data: Any, ttl: Optional[float] = None, tags: Iterable[str] = ()) -> CacheEntry:
        """Store ``data`` under ``key``, replacing any previous entry."""
        if key in self._entries:
            self._remove(key)

        entry = CacheEntry(
            data=data,
            stored_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
            tags=frozenset(tags),
        )
        self._entries[key] = entry
        for tag in entry.tags:
            self._tag_index.setdefault(tag, set()).add(key)
        return entry

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """Drop every entry whose key contains ``pattern``; all entries if omitted."""
        if not pattern:
            removed = len(self._entries)
            self.clear()
            return removed

        keys = [key for key in self._entries if pattern in key]
        for key in keys:
            self._remove(key)

        if keys:
            self.logger.debug("Invalidated cache pattern", pattern=pattern, keys_count=len(keys))
        return len(keys)

    def invalidate_tags(self, *tags: str) -> int:
        """Drop every entry carrying any of ``tags``."""
        keys: Set[str] = set()
        for tag in tags:
            keys |= self._tag_index.get(tag, set())

        for key in keys:
            self._remove(key)

        if keys:
            self.logger.debug("Invalidated cache tags", tags=list(tags), keys_count=len(keys))
        return len(keys)

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()
        self._tag_index.clear()

    teardown = clear

    def stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "expired": self._expired,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and entry.is_fresh(self._clock())

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry.tags:
            keys = self._tag_index.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tag_index[tag]
