"""Concrete implementation of the in-memory Caching Service.

Stores catalog responses with a fixed time-to-live. Expired entries are not
swept proactively; they are removed lazily the next time they are read.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

# Domain Layer Imports
from dexcatalog.domain.interfaces.cache import CacheService
from dexcatalog.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60  # 5 minutes

@dataclass
class CacheEntry:
    """Internal representation of a cache entry."""
    key: CacheKey
    value: Any
    inserted_at: float  # Clock reading at insertion

class InMemoryCacheService(CacheService):
    """Single-level TTL cache held in a dict.

    Accessed without locking: safe only while every caller shares one event loop.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_items: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the caching service.

        Args:
            ttl_seconds: Age at which an entry stops being visible.
            max_items: Optional bound; oldest-inserted entries are evicted past it.
            clock: Monotonic time source, injectable for tests.
        """
        if ttl_seconds <= 0:
            raise ValueError("Cache TTL must be positive.")
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self.ttl_seconds = ttl_seconds
        self.max_items = max_items
        self._clock = clock
        logger.info(f"CachingService initialized. ttl={ttl_seconds}s, max_items={max_items or 'unbounded'}")

    def __len__(self) -> int:
        return len(self._entries)

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.inserted_at < self.ttl_seconds

    def _evict_overflow(self) -> None:
        if self.max_items is None:
            return
        while len(self._entries) > self.max_items:
            # Oldest by insertion order
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]
            logger.debug(f"Evicted oldest cache entry: {oldest_key}")

    # --- CacheService Interface Implementation ---

    async def get(self, key: CacheKey) -> Optional[Any]:
        """Returns the cached value, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss for key: {key}")
            return None
        if not self._is_fresh(entry):
            del self._entries[key]
            logger.debug(f"Cache entry expired for key: {key}. Removed.")
            return None
        logger.debug(f"Cache hit for key: {key}")
        return entry.value

    async def set(self, key: CacheKey, value: Any) -> None:
        # Re-inserting moves the key to the end of the insertion order.
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())
        self._evict_overflow()
        logger.debug(f"Stored item in cache: key={key}")

    async def delete(self, key: CacheKey) -> None:
        if self._entries.pop(key, None) is not None:
            logger.debug(f"Deleted item from cache: key={key}")

    async def clear(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared in-memory cache ({count} entries).")
