"""
Batch orchestrators running several request instances as one unit.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from .config import ConfigStore
from .errors import CancelledRequestError
from .features.parallel import parallel_requests
from .features.serial import serial_requests
from .request import RequestInstance, create_request
from .types import RequestConfig, Response
from .utils import maybe_await

logger = logging.getLogger(__name__)

BatchHook = Callable[[], Union[None, Awaitable[None]]]
BatchSuccessHook = Callable[[List[Response]], Union[None, Awaitable[None]]]
ParallelErrorHook = Callable[[List[Exception]], Union[None, Awaitable[None]]]
SerialErrorHook = Callable[[Exception, int], Union[None, Awaitable[None]]]


class _Batch(ABC):
    """Shared lifecycle of a batch: hooks around one execution, cancellation."""

    def __init__(
        self,
        configs: Sequence[RequestConfig],
        *,
        on_before: Optional[BatchHook] = None,
        on_success: Optional[BatchSuccessHook] = None,
        on_finally: Optional[BatchHook] = None,
        store: Optional[ConfigStore] = None,
    ) -> None:
        self._instances = [create_request(config, store=store) for config in configs]
        self._on_before = on_before
        self._on_success = on_success
        self._on_finally = on_finally
        self._cancelled = False

    @property
    def instances(self) -> List[RequestInstance]:
        return list(self._instances)

    def send(self) -> "asyncio.Task[List[Response]]":
        """Start the batch and return its task."""
        self._cancelled = False
        return asyncio.ensure_future(self._send())

    def cancel(self) -> None:
        """Cancel every request in the batch."""
        self._cancelled = True
        for instance in self._instances:
            instance.cancel()

    async def _send(self) -> List[Response]:
        try:
            if self._on_before is not None:
                await maybe_await(self._on_before())
            if self._cancelled:
                raise CancelledRequestError()
            return await self._execute()
        finally:
            if self._on_finally is not None:
                await maybe_await(self._on_finally())

    @abstractmethod
    async def _execute(self) -> List[Response]:
        """Send the requests and return the responses to resolve with."""
        pass


class ParallelRequests(_Batch):
    """
    Send every request concurrently and wait for all of them.

    With ``fail_fast`` (the default) any failure calls ``on_error`` with
    all failures and raises the first one. Without it the batch never
    raises: ``on_error`` gets the failures, if any, and ``on_success``
    always gets the successful responses, possibly none.
    """

    def __init__(
        self,
        configs: Sequence[RequestConfig],
        *,
        fail_fast: bool = True,
        on_before: Optional[BatchHook] = None,
        on_success: Optional[BatchSuccessHook] = None,
        on_error: Optional[ParallelErrorHook] = None,
        on_finally: Optional[BatchHook] = None,
        store: Optional[ConfigStore] = None,
    ) -> None:
        super().__init__(
            configs,
            on_before=on_before,
            on_success=on_success,
            on_finally=on_finally,
            store=store,
        )
        self._fail_fast = fail_fast
        self._on_error = on_error

    async def _execute(self) -> List[Response]:
        results = await parallel_requests([instance.send for instance in self._instances])

        responses = [result.value for result in results if result.ok]
        errors: List[Any] = [result.reason for result in results if not result.ok]

        if errors:
            logger.debug(f"ParallelRequests: {len(errors)}/{len(results)} requests failed")
            if self._on_error is not None:
                await maybe_await(self._on_error(errors))
            if self._fail_fast:
                raise errors[0]

        if self._on_success is not None:
            await maybe_await(self._on_success(responses))
        return responses


class SerialRequests(_Batch):
    """
    Send requests one at a time in order, stopping at the first failure.

    ``on_error`` receives the failure and the index of the failed request;
    the failure is then raised and later requests are never sent.
    """

    def __init__(
        self,
        configs: Sequence[RequestConfig],
        *,
        on_before: Optional[BatchHook] = None,
        on_success: Optional[BatchSuccessHook] = None,
        on_error: Optional[SerialErrorHook] = None,
        on_finally: Optional[BatchHook] = None,
        store: Optional[ConfigStore] = None,
    ) -> None:
        super().__init__(
            configs,
            on_before=on_before,
            on_success=on_success,
            on_finally=on_finally,
            store=store,
        )
        self._on_error = on_error

    def _step(self, instance: RequestInstance, index: int) -> Callable[[], Awaitable[Response]]:
        async def run() -> Response:
            try:
                if self._cancelled:
                    raise CancelledRequestError(config=instance.config)
                return await instance.send()
            except Exception as error:
                logger.debug(f"SerialRequests: request {index} failed: {error}")
                if self._on_error is not None:
                    await maybe_await(self._on_error(error, index))
                raise

        return run

    async def _execute(self) -> List[Response]:
        results = await serial_requests(
            [self._step(instance, index) for index, instance in enumerate(self._instances)]
        )
        if self._on_success is not None:
            await maybe_await(self._on_success(results))
        return results


def create_parallel_requests(
    configs: Sequence[RequestConfig],
    *,
    fail_fast: bool = True,
    on_before: Optional[BatchHook] = None,
    on_success: Optional[BatchSuccessHook] = None,
    on_error: Optional[ParallelErrorHook] = None,
    on_finally: Optional[BatchHook] = None,
    store: Optional[ConfigStore] = None,
) -> ParallelRequests:
    """Create a parallel batch."""
    return ParallelRequests(
        configs,
        fail_fast=fail_fast,
        on_before=on_before,
        on_success=on_success,
        on_error=on_error,
        on_finally=on_finally,
        store=store,
    )


def create_serial_requests(
    configs: Sequence[RequestConfig],
    *,
    on_before: Optional[BatchHook] = None,
    on_success: Optional[BatchSuccessHook] = None,
    on_error: Optional[SerialErrorHook] = None,
    on_finally: Optional[BatchHook] = None,
    store: Optional[ConfigStore] = None,
) -> SerialRequests:
    """Create a serial batch."""
    return SerialRequests(
        configs,
        on_before=on_before,
        on_success=on_success,
        on_error=on_error,
        on_finally=on_finally,
        store=store,
    )
