"""
Request instances: one configured request that can be sent and cancelled.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .adapters import resolve_adapter
from .config import ConfigStore, get_default_config_store
from .errors import CancelledRequestError, is_cancelled_error, to_request_error
from .features.pipeline import build_request_pipeline
from .types import RequestAdapter, RequestConfig, Response
from .utils import maybe_await

logger = logging.getLogger(__name__)


def _consume_outcome(future: "asyncio.Future[Any]") -> None:
    """Retrieve the outcome of a request nobody awaits any more."""
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.debug(f"RequestInstance: abandoned request failed: {error!r}")


class RequestInstance:
    """
    A request bound to its effective configuration.

    The configuration is merged against the config store once, when the
    instance is created. Each ``send`` runs the full lifecycle: the
    ``on_before`` hook, the feature pipeline raced against cancellation,
    then ``on_success`` or ``on_error``, and ``on_finally`` exactly once.

    Example:
        request = create_request({"url": "/users", "retry": RetryConfig(count=2, delay_ms=100)})
        task = request.send()
        request.cancel()  # task raises CancelledRequestError
    """

    def __init__(self, config: RequestConfig, *, store: Optional[ConfigStore] = None):
        self._store = store if store is not None else get_default_config_store()
        self._config = self._store.merge(config)
        self._adapter: RequestAdapter = resolve_adapter(self._config.get("adapter"))
        self._cancelled = False
        self._abort: Optional[asyncio.Event] = None

    @property
    def config(self) -> RequestConfig:
        return self._config

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def send(self) -> "asyncio.Task[Response]":
        """
        Start a send and return its task.

        Cancellation state is reset before this returns, so ``cancel()``
        called right after applies to the task returned here. Must be
        called with a running event loop.
        """
        self._cancelled = False
        self._abort = asyncio.Event()
        return asyncio.ensure_future(self._run(self._abort))

    def cancel(self) -> None:
        """Cancel the current send. A later ``send`` starts uncancelled."""
        self._cancelled = True
        if self._abort is not None:
            self._abort.set()

    def _base_request(self, config: RequestConfig) -> Callable[[], Awaitable[Response]]:
        async def perform() -> Response:
            if self._cancelled:
                raise CancelledRequestError(config=config)
            return await self._adapter.request(config)

        return perform

    async def _race(
        self, pipeline: Callable[[], Awaitable[Response]], abort: asyncio.Event
    ) -> Response:
        request_task = asyncio.ensure_future(pipeline())
        abort_task = asyncio.ensure_future(abort.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, abort_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            request_task.add_done_callback(_consume_outcome)
            raise
        finally:
            abort_task.cancel()

        if request_task not in done:
            # The request keeps running; its outcome is dropped.
            request_task.add_done_callback(_consume_outcome)
            raise CancelledRequestError()
        return request_task.result()

    async def _run(self, abort: asyncio.Event) -> Response:
        config = self._config
        finalized = False

        async def run_finally() -> None:
            nonlocal finalized
            if finalized:
                return
            finalized = True
            on_finally = config.get("on_finally")
            if on_finally is not None:
                await maybe_await(on_finally())

        try:
            try:
                on_before = config.get("on_before")
                if on_before is not None:
                    updated = await maybe_await(on_before(config))
                    if updated is not None:
                        config = updated

                if self._cancelled:
                    raise CancelledRequestError(config=config)

                pipeline = build_request_pipeline(
                    self._base_request(config),
                    config,
                    default_store=config.get("cache_store"),
                )
                logger.debug(f"RequestInstance.send: {config.get('method', 'GET')} {config.get('url')}")
                response = await self._race(pipeline, abort)

                if self._cancelled:
                    raise CancelledRequestError(config=config)

                on_success = config.get("on_success")
                if on_success is not None:
                    await maybe_await(on_success(response))
                return response
            except Exception as error:
                if self._cancelled or is_cancelled_error(error):
                    logger.debug("RequestInstance.send: cancelled")
                    await run_finally()
                    if isinstance(error, CancelledRequestError):
                        to_request_error(error, config)
                        raise
                    raise CancelledRequestError(config=config) from error

                request_error = to_request_error(error, config)
                on_error = config.get("on_error")
                if on_error is not None:
                    await maybe_await(on_error(request_error))
                if request_error is error:
                    raise
                raise request_error from error
        finally:
            await run_finally()


def create_request(
    config: RequestConfig, *, store: Optional[ConfigStore] = None
) -> RequestInstance:
    """
    Create a request instance.

    Args:
        config: Per-call configuration
        store: Config store supplying defaults. Default: process-wide store

    Returns:
        RequestInstance
    """
    return RequestInstance(config, store=store)
