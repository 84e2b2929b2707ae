"""
Serialization helpers for persisted cache stores.
"""
from typing import Any, Mapping

RESPONSE_KEYS = ("status", "status_text", "headers", "data")


def is_response_like(value: Any) -> bool:
    """Check if a value has the shape of a Response."""
    return isinstance(value, Mapping) and all(key in value for key in RESPONSE_KEYS)


def serialize_response(value: Any) -> Any:
    """Drop the non-serializable ``raw`` transport handle from a response."""
    if is_response_like(value):
        return {key: item for key, item in value.items() if key != "raw"}
    return value
