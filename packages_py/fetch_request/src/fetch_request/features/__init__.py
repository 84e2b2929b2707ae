"""
Request features: retry, cache, idempotency and batch execution.
"""
from .cache import coerce_cache_config, with_cache
from .idempotent import (
    InFlightRequest,
    PendingRequestRegistry,
    clear_pending_requests,
    coerce_idempotent_config,
    get_pending_requests,
    with_idempotent,
)
from .parallel import SettledResult, parallel_requests
from .pipeline import build_request_pipeline
from .retry import async_sleep, calculate_delay, coerce_retry_config, retry_request
from .serial import serial_requests

__all__ = [
    "coerce_cache_config",
    "with_cache",
    "InFlightRequest",
    "PendingRequestRegistry",
    "clear_pending_requests",
    "coerce_idempotent_config",
    "get_pending_requests",
    "with_idempotent",
    "SettledResult",
    "parallel_requests",
    "build_request_pipeline",
    "async_sleep",
    "calculate_delay",
    "coerce_retry_config",
    "retry_request",
    "serial_requests",
]
