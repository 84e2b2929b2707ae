"""
Response caching for request functions.
"""
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union

from ..stores.registry import get_default_cache_store
from ..types import CacheConfig, CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def coerce_cache_config(config: Union[CacheConfig, Mapping[str, Any]]) -> CacheConfig:
    """Accept a CacheConfig or a mapping with the same fields."""
    if isinstance(config, CacheConfig):
        return config
    return CacheConfig(**config)


def with_cache(
    fn: Callable[[], Awaitable[T]],
    config: Union[CacheConfig, Mapping[str, Any]],
    *,
    default_store: Optional[CacheStore] = None,
) -> Callable[[], Awaitable[T]]:
    """
    Wrap a request function so successful results are cached under a key.

    A cached value short-circuits the call. Failures are never cached.

    Args:
        fn: Request function to wrap
        config: Cache configuration
        default_store: Store used when the cache config names none

    Returns:
        Wrapped request function
    """
    cache_config = coerce_cache_config(config)

    async def cached() -> T:
        store = cache_config.cache_store or default_store or get_default_cache_store()

        cached_value = await store.get(cache_config.key)
        if cached_value is not None:
            logger.debug(f"with_cache: hit key={cache_config.key}")
            return cached_value

        logger.debug(f"with_cache: miss key={cache_config.key}")
        result = await fn()
        await store.set(cache_config.key, result, cache_config.ttl_ms)
        return result

    return cached
