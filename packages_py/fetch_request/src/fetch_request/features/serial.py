"""
Run request functions one after another.
"""
from typing import Any, Awaitable, Callable, List, Sequence


async def serial_requests(fns: Sequence[Callable[[], Awaitable[Any]]]) -> List[Any]:
    """
    Await each function before starting the next.

    The first failure propagates and the remaining functions never run.

    Args:
        fns: Request functions

    Returns:
        Results in input order
    """
    results: List[Any] = []
    for fn in fns:
        results.append(await fn())
    return results
