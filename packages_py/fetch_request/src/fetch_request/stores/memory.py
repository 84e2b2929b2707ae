"""
In-memory cache store with TTL and LRU eviction.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..types import CacheEntry, CacheStore
from ..utils import calculate_expires_at, is_expired, now_ms

logger = logging.getLogger(__name__)


class MemoryCacheStore(CacheStore):
    """
    In-memory cache store.

    Entries live in an insertion-ordered dict. A hit on ``get``/``has``
    moves the key to the end, so the front key is always the least recently
    used one and is the one evicted when ``max_entries`` is exceeded.

    Example:
        store = MemoryCacheStore(max_entries=500)
        await store.set("users", response, ttl_ms=60_000)
        cached = await store.get("users")
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        cleanup_interval_seconds: Optional[float] = None,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 when provided")
        self._cache: Dict[str, CacheEntry] = {}
        self._max_entries = max_entries
        self._cleanup_interval = cleanup_interval_seconds
        self._cleanup_task: Optional[asyncio.Task] = None
        self._closed = False

    async def _start_cleanup(self) -> None:
        """Start the background cleanup task."""
        if (
            self._cleanup_interval is not None
            and self._cleanup_task is None
            and not self._closed
        ):
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def _cleanup_loop(self) -> None:
        """Background cleanup loop."""
        while not self._closed:
            try:
                await asyncio.sleep(self._cleanup_interval)
                self._sweep()
            except asyncio.CancelledError:
                break

    def _sweep(self) -> int:
        """Remove expired entries."""
        now = now_ms()
        expired_keys = [
            key for key, entry in self._cache.items() if is_expired(entry.expires_at, now)
        ]
        for key in expired_keys:
            del self._cache[key]
        if expired_keys:
            logger.debug(f"MemoryCacheStore: swept {len(expired_keys)} expired entries")
        return len(expired_keys)

    def _move_to_end(self, key: str) -> None:
        """Move an entry to the end of the LRU queue."""
        entry = self._cache.pop(key)
        self._cache[key] = entry

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for a key, evicting it if expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None

        if is_expired(entry.expires_at):
            del self._cache[key]
            return None

        self._move_to_end(key)
        return entry

    async def get(self, key: str) -> Optional[Any]:
        """Get a cached value by key."""
        entry = self._live_entry(key)
        return entry.value if entry is not None else None

    async def set(self, key: str, value: Any, ttl_ms: Optional[float] = None) -> None:
        """Store a value."""
        # Re-inserting moves an existing key to the end
        self._cache.pop(key, None)
        self._cache[key] = CacheEntry(value=value, expires_at=calculate_expires_at(ttl_ms))

        if self._max_entries is not None:
            while len(self._cache) > self._max_entries:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                logger.debug(f"MemoryCacheStore: evicted least recently used key={oldest_key}")

        await self._start_cleanup()

    async def delete(self, key: str) -> None:
        """Delete a cached value."""
        self._cache.pop(key, None)

    async def clear(self) -> None:
        """Clear all cached values."""
        self._cache.clear()

    async def has(self, key: str) -> bool:
        """Check if a key exists and is not expired."""
        return self._live_entry(key) is not None

    async def cleanup(self) -> None:
        """Remove all expired entries."""
        self._sweep()

    async def size(self) -> int:
        """Get the number of live entries."""
        self._sweep()
        return len(self._cache)

    async def keys(self) -> List[str]:
        """Get live keys, least recently used first."""
        self._sweep()
        return list(self._cache.keys())

    async def close(self) -> None:
        """Close the store and release resources."""
        self._closed = True
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        self._cache.clear()


def create_memory_cache_store(
    max_entries: Optional[int] = None,
    cleanup_interval_seconds: Optional[float] = None,
) -> MemoryCacheStore:
    """Create a memory cache store."""
    return MemoryCacheStore(
        max_entries=max_entries,
        cleanup_interval_seconds=cleanup_interval_seconds,
    )
