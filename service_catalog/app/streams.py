"""
Async stream helpers for the Catalog Service.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, TypeVar

S = TypeVar("S")
R = TypeVar("R")

_DONE = object()


class _Failure:
    """Exception carried through the result queue."""

    def __init__(self, exc: BaseException):
        self.exc = exc


async def map_latest(
    source: AsyncIterator[S],
    transform: Callable[[S], Awaitable[R]],
) -> AsyncIterator[R]:
    """
    Yield ``await transform(value)`` for each value of ``source``.

    When a new value arrives while the previous transform is still running,
    that transform is cancelled and replaced. Results come out in source
    order. Closing the returned iterator stops the source and cancels any
    running transform. Errors from either side are raised to the consumer.
    """
    results: "asyncio.Queue[object]" = asyncio.Queue()

    async def run(value: S) -> None:
        try:
            results.put_nowait(await transform(value))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            results.put_nowait(_Failure(exc))

    async def pump() -> None:
        current = None
        try:
            async for value in source:
                if current is not None and not current.done():
                    current.cancel()
                current = asyncio.ensure_future(run(value))
            if current is not None:
                await asyncio.gather(current, return_exceptions=True)
            results.put_nowait(_DONE)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            results.put_nowait(_Failure(exc))
        finally:
            if current is not None and not current.done():
                current.cancel()
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()

    pump_task = asyncio.ensure_future(pump())
    try:
        while True:
            item = await results.get()
            if item is _DONE:
                return
            if isinstance(item, _Failure):
                raise item.exc
            yield item  # type: ignore[misc]
    finally:
        pump_task.cancel()
        await asyncio.gather(pump_task, return_exceptions=True)
