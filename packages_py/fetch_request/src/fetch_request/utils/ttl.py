"""
TTL helpers. Expiry timestamps are epoch milliseconds.
"""
import time
from typing import Optional


MAX_EXPIRES_AT = 2 ** 53 - 1
"""Expiry stored for entries without a TTL (never expires)."""


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000


def calculate_expires_at(ttl_ms: Optional[float] = None) -> float:
    """
    Calculate the expiry timestamp for a TTL.

    Args:
        ttl_ms: TTL in milliseconds. None never expires; zero or negative
            expires immediately.

    Returns:
        Expiry timestamp (epoch milliseconds)
    """
    if ttl_ms is None:
        return MAX_EXPIRES_AT
    now = now_ms()
    return now - 1 if ttl_ms <= 0 else now + ttl_ms


def is_expired(expires_at: float, now: Optional[float] = None) -> bool:
    """An entry is expired strictly after its expiry timestamp."""
    return (now_ms() if now is None else now) > expires_at
