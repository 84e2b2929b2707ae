"""Pytest configuration and fixtures for fetch_request tests."""
import asyncio
import fnmatch
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from fetch_request import (
    MemoryCacheStore,
    RequestConfig,
    Response,
    clear_pending_requests,
    reset_adapters,
    reset_config,
    reset_default_cache_store,
)


def make_response(data: Any = None, status: int = 200) -> Response:
    return Response(status=status, status_text="OK", headers={}, data=data)


class MockAdapter:
    """Adapter double recording every config it receives."""

    def __init__(
        self,
        handler: Optional[Callable[[RequestConfig], Any]] = None,
        delay: float = 0,
    ) -> None:
        self.calls: List[RequestConfig] = []
        self.handler = handler
        self.delay = delay

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def request(self, config: RequestConfig) -> Response:
        self.calls.append(config)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.handler is None:
            return make_response({"url": config.get("url")})
        result = self.handler(config)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeRedis:
    """In-memory stand-in for an async redis-py client (bytes keys, like redis-py)."""

    def __init__(self) -> None:
        self.data: Dict[str, bytes] = {}
        self.expiry: Dict[str, Optional[int]] = {}
        self.closed = False

    @staticmethod
    def _name(name: Any) -> str:
        return name.decode("utf-8") if isinstance(name, bytes) else name

    async def get(self, name: Any) -> Optional[bytes]:
        return self.data.get(self._name(name))

    async def set(self, name: Any, value: Any, px: Optional[int] = None) -> bool:
        name = self._name(name)
        self.data[name] = value.encode("utf-8") if isinstance(value, str) else value
        self.expiry[name] = px
        return True

    async def delete(self, *names: Any) -> int:
        removed = 0
        for name in map(self._name, names):
            if self.data.pop(name, None) is not None:
                removed += 1
            self.expiry.pop(name, None)
        return removed

    async def scan_iter(self, match: Optional[str] = None):
        for name in list(self.data):
            if match is None or fnmatch.fnmatchcase(name, match):
                yield name.encode("utf-8")

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset process-wide defaults around every test."""
    reset_config()
    clear_pending_requests()
    reset_default_cache_store()
    reset_adapters()
    yield
    reset_config()
    clear_pending_requests()
    reset_default_cache_store()
    reset_adapters()


@pytest.fixture
def mock_adapter() -> MockAdapter:
    """Create an adapter double answering every request with 200."""
    return MockAdapter()


@pytest.fixture
def adapter_factory() -> Callable[..., MockAdapter]:
    """Factory for adapter doubles with custom handlers or delays."""
    return MockAdapter


@pytest.fixture
def response_factory() -> Callable[..., Response]:
    """Factory for plain responses."""
    return make_response


@pytest.fixture
def memory_store() -> MemoryCacheStore:
    """Create an unbounded memory cache store."""
    return MemoryCacheStore()


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Create an in-memory redis client double."""
    return FakeRedis()


@pytest.fixture
async def sql_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a SQLite engine backed by a temporary file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    yield engine
    await engine.dispose()
