# cache_manager.py
"""Memoization of complete system layouts.

Keys are derived from everything that can change a layout: the view mode, the
strategy, every input object and the full configuration table. Identical
inputs therefore always map to the same entry, and recomputing an entry that
already exists yields an equivalent layout, so concurrent writers need no lock.
"""
import hashlib
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional

from celestial import SystemLayout
from layout_config import LayoutConfig
from layout_config import config as default_config
from view_mode_strategy import CalculationContext


@dataclass
class CacheEntry:
    data: SystemLayout
    timestamp: float  # seconds since the epoch
    last_accessed: float
    access_count: int
    size: int  # estimated bytes


class CalculationCacheManager:
    """LRU cache of `SystemLayout`s bounded by `Performance.MAX_CACHE_SIZE`.

    Entries older than `Performance.CACHE_TIMEOUT_MS` are treated as misses and
    dropped on lookup. `clock` returns the current time in seconds and exists
    so expiry can be exercised without sleeping.
    """

    def __init__(self, layout_config: Optional[LayoutConfig] = None, clock: Callable[[], float] = time.time):
        self.config = layout_config or default_config
        self.clock = clock
        self._cache: 'OrderedDict[str, CacheEntry]' = OrderedDict()
        self.hit_count = 0
        self.miss_count = 0

    def generate_key(self, context: CalculationContext) -> str:
        """`view_mode|object_count|strategy_id|digest` for one pipeline run.

        The view mode comes first so `clear_for_view_mode` can match on prefix.
        """
        digest = hashlib.md5()
        for obj in context.objects:
            digest.update(repr(obj).encode('utf-8'))
        digest.update(context.config.fingerprint().encode('utf-8'))
        return f"{context.view_mode}|{len(context.objects)}|{context.strategy.id}|{digest.hexdigest()}"

    def has(self, key: str) -> bool:
        entry = self._cache.get(key)
        return entry is not None and not self._is_expired(entry)

    def get(self, key: str) -> Optional[SystemLayout]:
        entry = self._cache.get(key)
        if entry is not None and self._is_expired(entry):
            del self._cache[key]
            entry = None
        if entry is None:
            self.miss_count += 1
            return None

        entry.last_accessed = self.clock()
        entry.access_count += 1
        self._cache.move_to_end(key)
        self.hit_count += 1
        return entry.data

    def set(self, key: str, layout: SystemLayout):
        now = self.clock()
        self._cache[key] = CacheEntry(data=layout, timestamp=now, last_accessed=now, access_count=0,
                                      size=self.estimate_memory_size(layout))
        self._cache.move_to_end(key)
        max_entries = int(self.config.Performance.MAX_CACHE_SIZE)
        while len(self._cache) > max_entries:
            evicted_key, _ = self._cache.popitem(last=False)
            logging.debug(f"Cache full, evicted least recently used entry {evicted_key}")

    def clear(self):
        self._cache.clear()
        self.hit_count = 0
        self.miss_count = 0

    def clear_for_view_mode(self, view_mode: str) -> int:
        prefix = f"{view_mode}|"
        stale = [key for key in self._cache if key.startswith(prefix)]
        for key in stale:
            del self._cache[key]
        return len(stale)

    def evict_old_entries(self, max_age_minutes: float) -> int:
        """Drops every entry created more than `max_age_minutes` ago and returns how many were dropped."""
        cutoff = self.clock() - max_age_minutes * 60.0
        stale = [key for key, entry in self._cache.items() if entry.timestamp < cutoff]
        for key in stale:
            del self._cache[key]
        return len(stale)

    def get_cache_entry(self, key: str) -> Optional[CacheEntry]:
        return self._cache.get(key)

    def get_statistics(self) -> Dict:
        entries = list(self._cache.values())
        total_requests = self.hit_count + self.miss_count
        return {
            'total_entries': len(entries),
            'hit_rate': self.hit_count / total_requests if total_requests else 0.0,
            'miss_rate': self.miss_count / total_requests if total_requests else 0.0,
            'memory_usage': sum(entry.size for entry in entries),
            'oldest_entry': min((entry.timestamp for entry in entries), default=None),
            'newest_entry': max((entry.timestamp for entry in entries), default=None),
        }

    async def preload(self, contexts: Iterable[CalculationContext],
                      calculator: Callable[[CalculationContext], Awaitable[SystemLayout]]):
        """Computes and stores a layout for every context that is not cached yet.

        A failing context is logged and skipped; the others are still stored.
        """
        for context in contexts:
            key = self.generate_key(context)
            if self.has(key):
                continue
            try:
                self.set(key, await calculator(context))
            except Exception as e:
                logging.warning(f"Failed to preload cache for key {key}: {e}")

    @staticmethod
    def estimate_memory_size(layout: SystemLayout) -> int:
        # Rough figure: fixed overhead, ~200 bytes per result, metadata
        return 1000 + len(layout.results) * 200 + 500

    def _is_expired(self, entry: CacheEntry) -> bool:
        return (self.clock() - entry.timestamp) * 1000.0 > self.config.Performance.CACHE_TIMEOUT_MS
