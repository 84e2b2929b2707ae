"""
Helpers for callables that may be sync or async.
"""
import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """Await a hook result when it is awaitable, otherwise return it."""
    if inspect.isawaitable(value):
        return await value
    return value
