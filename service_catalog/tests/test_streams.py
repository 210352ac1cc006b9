"""
Tests for the cancel-and-restart stream mapper.
"""

import asyncio

import pytest

from service_catalog.app.streams import map_latest


async def collect(stream, timeout=1.0):
    items = []

    async def drain():
        async for item in stream:
            items.append(item)

    await asyncio.wait_for(drain(), timeout)
    return items


@pytest.mark.asyncio
async def test_results_follow_source_order():
    """Every value is transformed when the transforms keep up."""

    async def source():
        for value in (1, 2, 3):
            yield value
            await asyncio.sleep(0)

    async def times_ten(value):
        return value * 10

    assert await collect(map_latest(source(), times_ten)) == [10, 20, 30]


@pytest.mark.asyncio
async def test_newer_value_cancels_running_transform():
    """A transform still running when the next value arrives is dropped."""
    started = asyncio.Event()
    cancelled = []

    async def source():
        yield "slow"
        await started.wait()
        yield "fast"

    async def transform(value):
        if value == "slow":
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(value)
                raise
        return value.upper()

    assert await collect(map_latest(source(), transform)) == ["FAST"]
    assert cancelled == ["slow"]


@pytest.mark.asyncio
async def test_transform_error_reaches_consumer():
    """Exceptions raised by the transform propagate to the consumer."""

    async def source():
        yield 1

    async def transform(value):
        raise LookupError("missing")

    with pytest.raises(LookupError, match="missing"):
        await collect(map_latest(source(), transform))


@pytest.mark.asyncio
async def test_source_error_reaches_consumer():
    """Exceptions raised by the source propagate after earlier results."""

    async def source():
        yield 1
        await asyncio.sleep(0)
        raise ConnectionError("source broke")

    async def identity(value):
        return value

    received = []
    with pytest.raises(ConnectionError, match="source broke"):
        async for item in map_latest(source(), identity):
            received.append(item)

    assert received == [1]


@pytest.mark.asyncio
async def test_closing_consumer_closes_source():
    """Closing the mapped stream finalizes an endless source."""
    closed = asyncio.Event()

    async def source():
        try:
            while True:
                yield "tick"
                await asyncio.sleep(0.01)
        finally:
            closed.set()

    async def identity(value):
        return value

    stream = map_latest(source(), identity)
    assert await asyncio.wait_for(stream.__anext__(), 1) == "tick"
    await stream.aclose()

    await asyncio.wait_for(closed.wait(), 1)
