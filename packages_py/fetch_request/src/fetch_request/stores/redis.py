"""
Redis cache store implementation
Suitable for sharing cached responses across processes
"""
import json
import logging
from typing import Any, AsyncIterator, Optional, Protocol, Union

from ..types import CacheStore
from ..utils import calculate_expires_at, is_expired, serialize_response

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "fetch-request:"


class RedisClientProtocol(Protocol):
    """Protocol for Redis client (compatible with redis-py async)"""

    async def get(self, name: str) -> Any:
        ...

    async def set(self, name: str, value: Union[str, bytes], px: Optional[int] = None) -> Any:
        ...

    async def delete(self, *names: str) -> int:
        ...

    def scan_iter(self, match: Optional[str] = None) -> AsyncIterator[Any]:
        ...

    async def aclose(self) -> None:
        ...


def _decode(raw: Any) -> str:
    return raw.decode("utf-8") if isinstance(raw, bytes) else raw


class RedisCacheStore(CacheStore):
    """
    Redis implementation of CacheStore.

    Every key is namespaced with ``key_prefix``, so ``clear`` and
    ``cleanup`` only touch entries this store owns. Records are JSON
    ``{"value": ..., "expires_at": ...}``; records that fail to parse or
    have another shape are treated as a miss and deleted.
    """

    def __init__(
        self, client: RedisClientProtocol, key_prefix: str = DEFAULT_KEY_PREFIX
    ) -> None:
        """
        Create a new RedisCacheStore.

        Args:
            client: Redis client (async redis-py instance)
            key_prefix: Prefix for all keys. Default: 'fetch-request:'
        """
        self._client = client
        self._key_prefix = key_prefix

    def _get_key(self, key: str) -> str:
        """Get the full key with prefix"""
        return f"{self._key_prefix}{key}"

    def _parse_record(self, raw: Any) -> Optional[dict]:
        """Parse a stored record, returning None when it is malformed."""
        try:
            record = json.loads(_decode(raw))
        except (TypeError, ValueError):
            return None
        if (
            not isinstance(record, dict)
            or "value" not in record
            or not isinstance(record.get("expires_at"), (int, float))
        ):
            return None
        return record

    async def _read(self, key: str) -> Optional[dict]:
        full_key = self._get_key(key)
        raw = await self._client.get(full_key)
        if raw is None:
            return None

        record = self._parse_record(raw)
        if record is None:
            logger.warning(f"RedisCacheStore: dropping malformed record key={full_key}")
            await self._client.delete(full_key)
            return None

        if is_expired(record["expires_at"]):
            await self._client.delete(full_key)
            return None

        return record

    async def get(self, key: str) -> Optional[Any]:
        """Get a cached value"""
        record = await self._read(key)
        return record["value"] if record is not None else None

    async def set(self, key: str, value: Any, ttl_ms: Optional[float] = None) -> None:
        """
        Store a value.
        Positive TTLs also set a native PX expiry so Redis reclaims the key.
        """
        payload = json.dumps(
            {
                "value": serialize_response(value),
                "expires_at": calculate_expires_at(ttl_ms),
            }
        )
        px = int(ttl_ms) if ttl_ms is not None and ttl_ms >= 1 else None
        await self._client.set(self._get_key(key), payload, px=px)

    async def delete(self, key: str) -> None:
        """Delete a cached value"""
        await self._client.delete(self._get_key(key))

    async def _owned_keys(self) -> list:
        return [key async for key in self._client.scan_iter(match=f"{self._key_prefix}*")]

    async def clear(self) -> None:
        """Delete every key under this store's prefix"""
        keys = await self._owned_keys()
        if keys:
            await self._client.delete(*keys)

    async def has(self, key: str) -> bool:
        """Check if a live value exists"""
        return (await self._read(key)) is not None

    async def cleanup(self) -> None:
        """Delete expired and malformed records under this store's prefix"""
        stale = []
        for full_key in await self._owned_keys():
            raw = await self._client.get(full_key)
            if raw is None:
                continue
            record = self._parse_record(raw)
            if record is None or is_expired(record["expires_at"]):
                stale.append(full_key)
        if stale:
            await self._client.delete(*stale)
            logger.debug(f"RedisCacheStore: cleaned up {len(stale)} records")

    async def close(self) -> None:
        """Close the store and cleanup resources"""
        await self._client.aclose()


def create_redis_cache_store(
    client: RedisClientProtocol, key_prefix: str = DEFAULT_KEY_PREFIX
) -> RedisCacheStore:
    """
    Create a new RedisCacheStore instance.

    Args:
        client: Redis client (async redis-py instance)
        key_prefix: Prefix for all keys

    Returns:
        RedisCacheStore instance
    """
    return RedisCacheStore(client, key_prefix)
