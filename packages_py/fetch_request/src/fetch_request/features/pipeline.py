"""
Composition of the request features around a base request function.
"""
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from ..types import CacheStore
from .cache import with_cache
from .idempotent import PendingRequestRegistry, with_idempotent
from .retry import retry_request

T = TypeVar("T")


def build_request_pipeline(
    fn: Callable[[], Awaitable[T]],
    config: Mapping[str, Any],
    *,
    default_store: Optional[CacheStore] = None,
    registry: Optional[PendingRequestRegistry] = None,
) -> Callable[[], Awaitable[T]]:
    """
    Wrap a base request function with the features a config enables.

    Idempotency is applied first so it sits closest to the real call, then
    caching, then retry. Concurrent duplicates that all miss the cache
    still collapse into one call.

    Args:
        fn: Base request function
        config: Effective request configuration
        default_store: Store used when a feature config names none
        registry: Pending request registry for idempotency

    Returns:
        Function performing one pipelined request per call
    """
    pipeline: Callable[[], Awaitable[T]] = fn

    idempotent_config = config.get("idempotent")
    if idempotent_config is not None:
        pipeline = with_idempotent(
            pipeline, idempotent_config, default_store=default_store, registry=registry
        )

    cache_config = config.get("cache")
    if cache_config is not None:
        pipeline = with_cache(pipeline, cache_config, default_store=default_store)

    retry_config = config.get("retry")
    if retry_config is not None:
        inner = pipeline

        def retrying() -> Awaitable[T]:
            return retry_request(inner, retry_config)

        pipeline = retrying

    return pipeline
