"""
Run request functions concurrently and collect every outcome.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Literal, Optional, Sequence


@dataclass
class SettledResult:
    """Outcome of one request function."""

    status: Literal["fulfilled", "rejected"]
    """Whether the function returned or raised."""

    value: Any = None
    """Return value when fulfilled."""

    reason: Optional[BaseException] = None
    """Raised exception when rejected."""

    @property
    def ok(self) -> bool:
        return self.status == "fulfilled"


async def parallel_requests(
    fns: Sequence[Callable[[], Awaitable[Any]]],
) -> List[SettledResult]:
    """
    Start every function in order and wait for all of them to settle.

    A failure never stops the others. Results are in input order.

    Args:
        fns: Request functions

    Returns:
        One SettledResult per function
    """
    outcomes = await asyncio.gather(*(fn() for fn in fns), return_exceptions=True)
    results: List[SettledResult] = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            results.append(SettledResult(status="rejected", reason=outcome))
        else:
            results.append(SettledResult(status="fulfilled", value=outcome))
    return results
