"""
Types for fetch_request package.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Literal,
    Optional,
    Protocol,
    TypedDict,
    Union,
)


# HTTP methods
HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]

ParamValue = Union[str, int, float, bool, None]


class RetryStrategy(str, Enum):
    """Backoff strategy type"""
    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


RetryCondition = Callable[[Exception, int], bool]
"""Custom retry predicate: (error, retry_index) -> bool. First retry index is 0."""


@dataclass
class RetryConfig:
    """Retry configuration"""

    count: int
    """Number of retries after the first attempt. 0 means a single attempt."""

    delay_ms: float
    """Base delay between attempts (milliseconds)."""

    strategy: RetryStrategy = RetryStrategy.FIXED
    """Backoff strategy. Default: fixed"""

    max_delay_ms: Optional[float] = None
    """Upper bound applied to every computed delay (milliseconds)."""

    condition: Optional[RetryCondition] = None
    """Custom should-retry predicate."""

    total_timeout_ms: Optional[float] = None
    """Wall-clock budget for all attempts and delays (milliseconds). None or 0 means no budget."""

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("count must be >= 0")
        if self.delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        if self.max_delay_ms is not None and self.max_delay_ms < 0:
            raise ValueError("max_delay_ms must be >= 0 when provided")
        if self.total_timeout_ms is not None and self.total_timeout_ms < 0:
            raise ValueError("total_timeout_ms must be >= 0 when provided")
        self.strategy = RetryStrategy(self.strategy)


@dataclass
class CacheConfig:
    """Configuration for response caching."""

    key: str
    """Cache key."""

    ttl_ms: Optional[float] = None
    """TTL in milliseconds. None never expires, <= 0 expires immediately."""

    cache_store: Optional["CacheStore"] = None
    """Store to use. Falls back to the request store, then the default store."""


@dataclass
class IdempotentConfig:
    """Configuration for idempotent (deduplicated) requests."""

    key: str
    """Idempotency key shared by logically identical requests."""

    ttl_ms: Optional[float] = None
    """How long a completed result keeps answering repeats (milliseconds)."""

    cache_store: Optional["CacheStore"] = None
    """Store to use. Falls back to the request store, then the default store."""


class _ResponseBase(TypedDict):
    status: int
    status_text: str
    headers: Dict[str, str]
    data: Any


class Response(_ResponseBase, total=False):
    """Response produced by a request adapter."""

    # Adapter-specific transport response; cache stores never persist it.
    raw: Any


OnBeforeHook = Callable[
    ["RequestConfig"],
    Union["RequestConfig", None, Awaitable[Optional["RequestConfig"]]],
]
OnSuccessHook = Callable[[Response], Union[None, Awaitable[None]]]
OnErrorHook = Callable[[Exception], Union[None, Awaitable[None]]]
OnFinallyHook = Callable[[], Union[None, Awaitable[None]]]

HOOK_KEYS = ("on_before", "on_success", "on_error", "on_finally")
"""Hook keys are always replaced, never combined."""


class RequestConfig(TypedDict, total=False):
    """Request configuration.

    An absent key is unset and never overrides a default; a key that is
    present with ``None`` is an explicit null override.
    """

    url: str
    method: HttpMethod
    base_url: str
    headers: Optional[Dict[str, str]]
    params: Optional[Dict[str, ParamValue]]
    data: Any
    timeout_ms: Optional[float]
    adapter: Union["RequestAdapter", str, None]
    cache_store: Optional["CacheStore"]
    retry: Optional[RetryConfig]
    cache: Optional[CacheConfig]
    idempotent: Optional[IdempotentConfig]
    on_before: Optional[OnBeforeHook]
    on_success: Optional[OnSuccessHook]
    on_error: Optional[OnErrorHook]
    on_finally: Optional[OnFinallyHook]


class RequestAdapter(Protocol):
    """Request adapter interface (performs the actual network call)."""

    async def request(self, config: RequestConfig) -> Response:
        """Perform a request, returning a response or raising RequestError."""
        ...


@dataclass
class CacheEntry:
    """Stored cache value."""

    value: Any
    """The cached value."""

    expires_at: float
    """When the entry expires (epoch milliseconds)."""


class CacheStore(ABC):
    """Cache store interface shared by the cache and idempotent features."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get a cached value, or None when absent or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_ms: Optional[float] = None) -> None:
        """Store a value. Omitted TTL never expires."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a cached value."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Clear all values owned by this store."""
        pass

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Check if a live value exists."""
        pass

    async def cleanup(self) -> None:
        """Proactively evict expired entries. Optional for backends."""
        return None

    async def close(self) -> None:
        """Close the store and release resources."""
        return None
