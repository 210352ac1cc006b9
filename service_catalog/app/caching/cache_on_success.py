"""
Single-flight, memoize-on-success cache for an asynchronous producer.
"""

import asyncio
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


T = TypeVar("T")


class CacheOnSuccess(Generic[T]):
    """
    Cache the result of ``block`` once it completes successfully.

    Concurrent callers of :meth:`get_or_await` share a single in-flight call
    to ``block``. A successful value is kept for the lifetime of the instance.
    When ``block`` raises, the cache resets so the next caller starts a new
    attempt, and every caller that was waiting on the failed attempt receives
    ``on_error_fallback()`` instead. Without a fallback the failure is
    re-raised to those callers.

    Cancelling a caller never cancels the shared producer. If the producer
    task itself is cancelled, the cache resets as it does on failure and the
    callers still waiting on it start a new attempt.
    """

    def __init__(
        self,
        block: Callable[[], Awaitable[T]],
        on_error_fallback: Optional[Callable[[], T]] = None,
        *,
        name: str = "cache",
        metrics: Optional["MetricsCollector"] = None,
    ):
        self._block = block
        self._on_error_fallback = on_error_fallback
        self.name = name
        self.metrics = metrics
        self.logger = get_logger(f"catalog.cache.{name}")

        self._lock = asyncio.Lock()
        self._deferred: Optional["asyncio.Task[T]"] = None
        self._completed = False
        self._value: Optional[T] = None

    @property
    def is_completed(self) -> bool:
        """True once a value has been cached."""
        return self._completed

    async def get_or_await(self) -> T:
        """Return the cached value, or await the shared producer call."""
        while True:
            if self._completed:
                self._count("cache_hits_total")
                return self._value  # type: ignore[return-value]

            async with self._lock:
                if self._completed:
                    self._count("cache_hits_total")
                    return self._value  # type: ignore[return-value]

                task = self._deferred
                if task is None or task.cancelled():
                    task = asyncio.ensure_future(self._produce())
                    task.add_done_callback(self._on_producer_done)
                    self._deferred = task
                    self._count("cache_producer_calls_total")
                    self.logger.debug("Producer started", cache=self.name)

            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                # Retry when the shared attempt was cancelled rather than this caller
                if not task.cancelled():
                    raise
            except Exception:
                if self._on_error_fallback is None:
                    raise
                return self._on_error_fallback()

    async def _produce(self) -> T:
        """Run the producer once and settle the cache state."""
        current = asyncio.current_task()
        try:
            value = await self._block()
        except Exception as exc:
            async with self._lock:
                if self._deferred is current:
                    self._deferred = None
            self._count("cache_producer_failures_total")
            self.logger.warning(
                "Producer failed, cache reset",
                cache=self.name,
                error=str(exc),
                error_type=type(exc).__name__
            )
            raise

        async with self._lock:
            self._value = value
            self._completed = True
            self._deferred = None

        self.logger.info("Producer succeeded, value cached", cache=self.name)
        return value

    def _on_producer_done(self, task: "asyncio.Task[Any]") -> None:
        """Reset after a cancelled attempt; mark failures as retrieved."""
        if task.cancelled():
            # Can run before the coroutine ever started, so _produce never sees it
            if self._deferred is task:
                self._deferred = None
            self._count("cache_producer_failures_total")
            self.logger.warning("Producer cancelled, cache reset", cache=self.name)
            return
        task.exception()

    def _count(self, metric_name: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter(metric_name, cache_name=self.name)
