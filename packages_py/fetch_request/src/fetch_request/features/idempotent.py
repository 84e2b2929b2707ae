"""
Idempotent requests: concurrent and repeated calls sharing one execution.

While a call for a key is in flight, every other call with the same key
joins it instead of executing again. Once it succeeds, its result is
stored under the key for ``ttl_ms`` and answers repeats from the store.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar, Union

from ..stores.registry import get_default_cache_store
from ..types import CacheStore, IdempotentConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class InFlightRequest:
    """In-flight request tracker."""

    future: "asyncio.Future[Any]"
    """Future that resolves when the request completes."""

    subscribers: int = 1
    """Number of callers waiting for this request."""

    started_at: float = 0
    """When the request was initiated (Unix timestamp)."""

    expiry: Optional[asyncio.TimerHandle] = None
    """Timer that drops the entry if the request outlives its TTL."""


class PendingRequestRegistry:
    """
    Registry of in-flight idempotent requests, keyed by idempotency key.

    All methods are synchronous so that checking for and registering an
    in-flight request can never be separated by a suspension point.
    """

    def __init__(self) -> None:
        self._in_flight: Dict[str, InFlightRequest] = {}

    def get(self, key: str) -> Optional[InFlightRequest]:
        """Get an in-flight request by key."""
        return self._in_flight.get(key)

    def set(self, key: str, request: InFlightRequest) -> None:
        """Register an in-flight request."""
        self._in_flight[key] = request

    def delete(self, key: str, future: Optional["asyncio.Future[Any]"] = None) -> bool:
        """
        Remove an in-flight request.

        When ``future`` is given the entry is only removed if it still
        tracks that future, so a late cleanup never drops a newer request.
        """
        current = self._in_flight.get(key)
        if current is None or (future is not None and current.future is not future):
            return False
        if current.expiry is not None:
            current.expiry.cancel()
        del self._in_flight[key]
        return True

    def has(self, key: str) -> bool:
        """Check if a request is in-flight."""
        return key in self._in_flight

    def size(self) -> int:
        """Get current number of in-flight requests."""
        return len(self._in_flight)

    def clear(self) -> None:
        """Clear all in-flight requests."""
        for request in self._in_flight.values():
            if request.expiry is not None:
                request.expiry.cancel()
        self._in_flight.clear()


_pending_requests = PendingRequestRegistry()


def get_pending_requests() -> PendingRequestRegistry:
    """Get the process-wide pending request registry."""
    return _pending_requests


def clear_pending_requests() -> None:
    """Clear the process-wide pending request registry (use with caution)."""
    _pending_requests.clear()


def coerce_idempotent_config(
    config: Union[IdempotentConfig, Mapping[str, Any]],
) -> IdempotentConfig:
    """Accept an IdempotentConfig or a mapping with the same fields."""
    if isinstance(config, IdempotentConfig):
        return config
    return IdempotentConfig(**config)


def with_idempotent(
    fn: Callable[[], Awaitable[T]],
    config: Union[IdempotentConfig, Mapping[str, Any]],
    *,
    default_store: Optional[CacheStore] = None,
    registry: Optional[PendingRequestRegistry] = None,
) -> Callable[[], Awaitable[T]]:
    """
    Wrap a request function so calls sharing a key share one execution.

    The returned function is synchronous: it registers the shared task
    before returning, so a second caller arriving before the first one
    yields still joins it. Failures reach every sharer, are never stored,
    and free the key for the next call.

    Args:
        fn: Request function to wrap
        config: Idempotency configuration
        default_store: Store used when the idempotent config names none
        registry: Pending request registry. Default: process-wide registry

    Returns:
        Wrapped request function

    Example:
        fetch_user = with_idempotent(
            lambda: adapter.request(config),
            IdempotentConfig(key="user:42", ttl_ms=5_000),
        )
        first, second = await asyncio.gather(fetch_user(), fetch_user())
    """
    idempotent_config = coerce_idempotent_config(config)
    key = idempotent_config.key
    pending = registry if registry is not None else _pending_requests

    def idempotent() -> "asyncio.Future[T]":
        existing = pending.get(key)
        if existing is not None:
            existing.subscribers += 1
            logger.debug(
                f"with_idempotent: joined in-flight key={key} "
                f"subscribers={existing.subscribers}"
            )
            return asyncio.shield(existing.future)

        store = idempotent_config.cache_store or default_store or get_default_cache_store()

        async def execute() -> T:
            try:
                stored = await store.get(key)
                if stored is not None:
                    logger.debug(f"with_idempotent: stored result key={key}")
                    return stored

                result = await fn()
                await store.set(key, result, idempotent_config.ttl_ms)
                return result
            finally:
                pending.delete(key, task)

        task = asyncio.ensure_future(execute())
        in_flight = InFlightRequest(future=task, started_at=time.time())
        pending.set(key, in_flight)

        ttl_ms = idempotent_config.ttl_ms
        if ttl_ms is not None and ttl_ms > 0:
            in_flight.expiry = asyncio.get_running_loop().call_later(
                ttl_ms / 1000, pending.delete, key, task
            )

        logger.debug(f"with_idempotent: leading key={key}")
        return asyncio.shield(task)

    return idempotent
