"""
Default cache store registry.

Resolution order: the ``cache_store`` of the process-wide configuration,
then the store set with ``set_default_cache_store``, then a lazily created
process-wide MemoryCacheStore.
"""
from typing import Optional

from ..config import get_global_config
from ..types import CacheStore
from .memory import MemoryCacheStore

_default_cache_store: Optional[CacheStore] = None
_fallback_cache_store: Optional[MemoryCacheStore] = None


def set_default_cache_store(store: CacheStore) -> None:
    """Set the default cache store."""
    global _default_cache_store
    _default_cache_store = store


def get_default_cache_store() -> CacheStore:
    """Get the default cache store."""
    global _fallback_cache_store
    configured = get_global_config().get("cache_store")
    if configured is not None:
        return configured
    if _default_cache_store is not None:
        return _default_cache_store
    if _fallback_cache_store is None:
        _fallback_cache_store = MemoryCacheStore()
    return _fallback_cache_store


def reset_default_cache_store() -> None:
    """Forget the registered and fallback default stores."""
    global _default_cache_store, _fallback_cache_store
    _default_cache_store = None
    _fallback_cache_store = None
