"""
Search cache for storing result pages with TTL expiration.

This module implements a simple in-memory cache with a TTL (Time To Live)
mechanism. Entries are immutable; a put on an existing key replaces the
entry. Cleanup is lazy: an expired entry is removed by the lookup that
finds it, there is no background sweep.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from easynews_search.clock import Clock, SystemClock
from easynews_search.logger import get_logger
from easynews_search.models import SearchResponse

logger = get_logger("easynews_search.cache")

DEFAULT_TTL = 24 * 60 * 60  # 24 hours


def _short(key: str) -> str:
    return key[:50] + "..." if len(key) > 50 else key


@dataclass(frozen=True)
class CacheEntry:
    """A cached response and the time it was stored."""

    response: SearchResponse
    timestamp: float


class SearchCache:
    """
    Simple in-memory cache with TTL expiration.

    Attributes:
        ttl: Time to live in seconds, fixed at construction
    """

    def __init__(self, ttl: float = DEFAULT_TTL, clock: Optional[Clock] = None) -> None:
        """
        Initialize cache with TTL.

        Args:
            ttl: Time to live in seconds. Default is 86400 (24 hours).
            clock: Time source (default: SystemClock)
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = float(ttl)
        self._clock: Clock = clock or SystemClock()
        self._entries: Dict[str, CacheEntry] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get cached entry if it exists and hasn't expired.

        An expired entry is evicted before None is returned.

        Args:
            key: Cache key

        Returns:
            CacheEntry if found and not expired, None otherwise
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss for key: {_short(key)}")
            return None

        if self._clock.now() - entry.timestamp > self._ttl:
            logger.debug(f"Cache expired for key: {_short(key)}")
            # Only evict the entry we saw; a concurrent put may have replaced it
            if self._entries.get(key) is entry:
                del self._entries[key]
            return None

        logger.debug(f"Cache hit for key: {_short(key)}")
        return entry

    def put(self, key: str, response: SearchResponse) -> CacheEntry:
        """
        Store a response stamped with the current time.

        Args:
            key: Cache key
            response: Response to cache

        Returns:
            The new entry
        """
        entry = CacheEntry(response=response, timestamp=self._clock.now())
        self._entries[key] = entry
        logger.debug(f"Caching {len(response.data)} results for key: {_short(key)}")
        return entry

    def clear(self) -> None:
        """Clear all cache entries."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
