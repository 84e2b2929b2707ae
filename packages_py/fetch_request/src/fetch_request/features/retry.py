"""
Retry with fixed, linear or exponential backoff and an optional total budget.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union

from ..errors import RetryTimeoutError
from ..types import RetryConfig, RetryStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")


def calculate_delay(
    retry_index: int,
    base_delay_ms: float,
    strategy: Union[RetryStrategy, str] = RetryStrategy.FIXED,
    max_delay_ms: Optional[float] = None,
) -> float:
    """
    Calculate the delay before a retry.

    Args:
        retry_index: The retry number (0 for the first retry)
        base_delay_ms: Base delay in milliseconds
        strategy: Backoff strategy
        max_delay_ms: Optional ceiling for the delay

    Returns:
        Delay in milliseconds
    """
    strategy = RetryStrategy(strategy)
    if strategy == RetryStrategy.EXPONENTIAL:
        delay = base_delay_ms * (2 ** retry_index)
    elif strategy == RetryStrategy.LINEAR:
        delay = base_delay_ms * (retry_index + 1)
    else:  # FIXED
        delay = base_delay_ms

    if max_delay_ms is not None:
        return min(delay, max_delay_ms)
    return delay


def coerce_retry_config(config: Union[RetryConfig, Mapping[str, Any]]) -> RetryConfig:
    """Accept a RetryConfig or a mapping with the same fields."""
    if isinstance(config, RetryConfig):
        return config
    return RetryConfig(**config)


async def async_sleep(delay_ms: float) -> None:
    """
    Sleep for a specified duration (async).

    Args:
        delay_ms: Duration in milliseconds
    """
    await asyncio.sleep(delay_ms / 1000)


async def retry_request(
    fn: Callable[[], Awaitable[T]],
    config: Union[RetryConfig, Mapping[str, Any]],
) -> T:
    """
    Execute a function with retry logic.

    The first attempt always runs. Each failure is followed by at most
    ``count`` retries; the last error is re-raised once they are exhausted.
    With ``total_timeout_ms`` the budget is checked before asking the
    retry condition and again before sleeping; either check raises
    RetryTimeoutError instead of the last error. A running attempt is never
    interrupted by the budget.

    Args:
        fn: Async function to execute
        config: Retry configuration

    Returns:
        The result of the first successful attempt

    Example:
        response = await retry_request(
            lambda: adapter.request(config),
            RetryConfig(count=3, delay_ms=100, strategy="exponential"),
        )
    """
    retry_config = coerce_retry_config(config)
    # 0 disables the budget like None
    total_timeout_ms = retry_config.total_timeout_ms or None

    start_time = time.monotonic()
    retry_count = 0

    def remaining_ms() -> float:
        return total_timeout_ms - (time.monotonic() - start_time) * 1000

    try:
        return await fn()
    except Exception as error:
        last_error = error

    while retry_count < retry_config.count:
        retry_count += 1
        retry_index = retry_count - 1

        if total_timeout_ms is not None and remaining_ms() <= 0:
            raise RetryTimeoutError(total_timeout_ms) from last_error

        if retry_config.condition is not None:
            if not retry_config.condition(last_error, retry_index):
                logger.debug(f"retry_request: condition declined retry {retry_index}")
                raise last_error

        delay_ms = calculate_delay(
            retry_index,
            retry_config.delay_ms,
            retry_config.strategy,
            retry_config.max_delay_ms,
        )

        if total_timeout_ms is not None and delay_ms > remaining_ms():
            raise RetryTimeoutError(total_timeout_ms) from last_error

        logger.debug(
            f"retry_request: retry {retry_count}/{retry_config.count} in {delay_ms}ms "
            f"after {type(last_error).__name__}: {last_error}"
        )
        await async_sleep(delay_ms)

        try:
            return await fn()
        except Exception as error:
            last_error = error

    if retry_config.count > 0:
        logger.warning(
            f"retry_request: giving up after {retry_config.count} retries: {last_error}"
        )
    raise last_error
