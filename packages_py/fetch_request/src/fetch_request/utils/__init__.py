"""
Utility helpers for fetch_request.
"""
from .awaitables import maybe_await
from .deep_merge import deep_merge, is_plain_mapping
from .serialize import is_response_like, serialize_response
from .ttl import MAX_EXPIRES_AT, calculate_expires_at, is_expired, now_ms

__all__ = [
    "maybe_await",
    "deep_merge",
    "is_plain_mapping",
    "is_response_like",
    "serialize_response",
    "MAX_EXPIRES_AT",
    "calculate_expires_at",
    "is_expired",
    "now_ms",
]
