"""
Tests for parallel_requests and serial_requests.
"""
import asyncio

import pytest

from fetch_request import RequestError, SettledResult, parallel_requests, serial_requests


def returning(value, delay=0.0, log=None):
    async def fn():
        if log is not None:
            log.append(value)
        await asyncio.sleep(delay)
        return value

    return fn


def raising(error):
    async def fn():
        raise error

    return fn


class TestParallelRequests:
    """Tests for parallel_requests."""

    async def test_settles_everything_in_input_order(self):
        """Should collect every outcome without short-circuiting."""
        error = RequestError("second")
        results = await parallel_requests(
            [returning("a", delay=0.02), raising(error), returning("c")]
        )

        assert results == [
            SettledResult(status="fulfilled", value="a"),
            SettledResult(status="rejected", reason=error),
            SettledResult(status="fulfilled", value="c"),
        ]
        assert [result.ok for result in results] == [True, False, True]

    async def test_starts_in_input_order(self):
        """Should start functions in the given order."""
        started = []
        await parallel_requests([returning(i, log=started) for i in range(4)])
        assert started == [0, 1, 2, 3]

    async def test_empty(self):
        """Should return an empty list for no functions."""
        assert await parallel_requests([]) == []


class TestSerialRequests:
    """Tests for serial_requests."""

    async def test_returns_results_in_order(self):
        """Should await each function in turn."""
        assert await serial_requests([returning(1), returning(2)]) == [1, 2]

    async def test_stops_at_first_failure(self):
        """Should not run functions after a failure."""
        ran = []
        error = RequestError("stop")

        with pytest.raises(RequestError) as exc_info:
            await serial_requests([returning("a", log=ran), raising(error), returning("c", log=ran)])

        assert exc_info.value is error
        assert ran == ["a"]
