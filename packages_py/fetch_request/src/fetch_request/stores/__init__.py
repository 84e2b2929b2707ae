"""
Store implementations for fetch_request.
"""
from .memory import MemoryCacheStore, create_memory_cache_store
from .redis import RedisCacheStore, RedisClientProtocol, create_redis_cache_store
from .registry import (
    get_default_cache_store,
    reset_default_cache_store,
    set_default_cache_store,
)
from .sql import SqlCacheStore, create_sql_cache_store

__all__ = [
    "MemoryCacheStore",
    "create_memory_cache_store",
    "RedisCacheStore",
    "RedisClientProtocol",
    "create_redis_cache_store",
    "SqlCacheStore",
    "create_sql_cache_store",
    "get_default_cache_store",
    "reset_default_cache_store",
    "set_default_cache_store",
]
