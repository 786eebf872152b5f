"""In-process read-through cache with per-scope invalidation.

Entries are grouped by scope (an organization id) so a write can drop every
cached read for that organization at once. The store stays the source of
truth; callers must cache plain values, never live ORM objects.
"""

import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    invalidations: int = 0


@dataclass
class ScopedTTLCache:
    ttl_seconds: float = 300
    clock: Callable[[], float] = time.monotonic
    stats: CacheStats = field(default_factory=CacheStats)

    def __post_init__(self):
        self._entries: Dict[Tuple[Hashable, Hashable], CacheEntry] = {}
        self._lock = RLock()

    def get(self, scope: Hashable, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get((scope, key))
            if entry is None:
                self.stats.misses += 1
                return None
            if self.clock() >= entry.expires_at:
                del self._entries[(scope, key)]
                self.stats.misses += 1
                return None
            self.stats.hits += 1
            return entry.value

    def set(self, scope: Hashable, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[(scope, key)] = CacheEntry(value=value, expires_at=self.clock() + self.ttl_seconds)

    def get_or_load(self, scope: Hashable, key: Hashable, loader: Callable[[], Any]) -> Any:
        value = self.get(scope, key)
        if value is None:
            value = loader()
            self.set(scope, key, value)
        return value

    def invalidate(self, scope: Hashable) -> None:
        """Drop every entry cached under `scope`."""
        with self._lock:
            stale = [cache_key for cache_key in self._entries if cache_key[0] == scope]
            for cache_key in stale:
                del self._entries[cache_key]
            self.stats.invalidations += 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
