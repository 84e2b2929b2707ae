"""
Request orchestration: config inheritance, retry, caching, idempotency and batches
on top of a pluggable transport adapter.
"""
from .types import (
    HttpMethod,
    ParamValue,
    RetryStrategy,
    RetryCondition,
    RetryConfig,
    CacheConfig,
    IdempotentConfig,
    Response,
    RequestConfig,
    RequestAdapter,
    CacheEntry,
    CacheStore,
)
from .errors import (
    CANCELLED,
    RETRY_TIMEOUT,
    TIMEOUT,
    NETWORK_ERROR,
    UNKNOWN_ERROR,
    RequestError,
    CancelledRequestError,
    RetryTimeoutError,
    is_cancelled_error,
    to_request_error,
)
from .config import (
    ConfigStore,
    merge_config,
    configure,
    reset_config,
    get_global_config,
    get_default_config_store,
)
from .features import (
    calculate_delay,
    retry_request,
    with_cache,
    with_idempotent,
    PendingRequestRegistry,
    clear_pending_requests,
    get_pending_requests,
    build_request_pipeline,
    SettledResult,
    parallel_requests,
    serial_requests,
)
from .stores import (
    MemoryCacheStore,
    RedisCacheStore,
    SqlCacheStore,
    create_memory_cache_store,
    create_redis_cache_store,
    create_sql_cache_store,
    get_default_cache_store,
    set_default_cache_store,
    reset_default_cache_store,
)
from .adapters import (
    HttpxAdapter,
    register_adapter,
    get_adapter,
    set_default_adapter,
    get_default_adapter,
    reset_adapters,
)
from .request import RequestInstance, create_request
from .batch import (
    ParallelRequests,
    SerialRequests,
    create_parallel_requests,
    create_serial_requests,
)

__version__ = "1.0.0"

__all__ = [
    # Types
    "HttpMethod",
    "ParamValue",
    "RetryStrategy",
    "RetryCondition",
    "RetryConfig",
    "CacheConfig",
    "IdempotentConfig",
    "Response",
    "RequestConfig",
    "RequestAdapter",
    "CacheEntry",
    "CacheStore",
    # Errors
    "CANCELLED",
    "RETRY_TIMEOUT",
    "TIMEOUT",
    "NETWORK_ERROR",
    "UNKNOWN_ERROR",
    "RequestError",
    "CancelledRequestError",
    "RetryTimeoutError",
    "is_cancelled_error",
    "to_request_error",
    # Config
    "ConfigStore",
    "merge_config",
    "configure",
    "reset_config",
    "get_global_config",
    "get_default_config_store",
    # Features
    "calculate_delay",
    "retry_request",
    "with_cache",
    "with_idempotent",
    "PendingRequestRegistry",
    "clear_pending_requests",
    "get_pending_requests",
    "build_request_pipeline",
    "SettledResult",
    "parallel_requests",
    "serial_requests",
    # Stores
    "MemoryCacheStore",
    "RedisCacheStore",
    "SqlCacheStore",
    "create_memory_cache_store",
    "create_redis_cache_store",
    "create_sql_cache_store",
    "get_default_cache_store",
    "set_default_cache_store",
    "reset_default_cache_store",
    # Adapters
    "HttpxAdapter",
    "register_adapter",
    "get_adapter",
    "set_default_adapter",
    "get_default_adapter",
    "reset_adapters",
    # Requests
    "RequestInstance",
    "create_request",
    "ParallelRequests",
    "SerialRequests",
    "create_parallel_requests",
    "create_serial_requests",
]
