"""Bounded FIFO task limiter for asyncio workloads."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedTaskLimiter:
    """Runs scheduled coroutines with at most ``max_concurrency`` in flight.

    Waiting tasks are released strictly in the order they were scheduled.
    The limiter keeps no error state: a failing task releases its slot and
    its exception propagates only to the caller that scheduled it.

    Independent instances are used per concurrency domain so that a slow
    class of work never holds slots that another class needs.

    Example:
        limiter = BoundedTaskLimiter(3, name="articles")
        results = await asyncio.gather(
            *(limiter.schedule(lambda url=url: fetch(url)) for url in urls)
        )
    """

    def __init__(self, max_concurrency: int, *, name: str = "limiter") -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.name = name
        self.max_concurrency = max_concurrency
        self._active = 0
        self._peak = 0
        self._completed = 0
        self._waiters: Deque[asyncio.Future] = deque()

    @property
    def active(self) -> int:
        return self._active

    @property
    def pending(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    @property
    def peak(self) -> int:
        """Highest number of tasks observed running at once."""
        return self._peak

    async def schedule(self, task: Callable[[], Awaitable[T]]) -> T:
        """Queue *task* and return its result once it has run."""
        await self._acquire()
        try:
            return await task()
        finally:
            self._completed += 1
            self._release()

    async def _acquire(self) -> None:
        if self._active < self.max_concurrency and not self._waiters:
            self._take_slot()
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The slot was already handed to us; pass it on.
                self._release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def _take_slot(self) -> None:
        self._active += 1
        if self._active > self._peak:
            self._peak = self._active

    def _release(self) -> None:
        # Hand the slot directly to the oldest live waiter, if any.
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._active -= 1

    def get_stats(self) -> Dict[str, int]:
        return {
            "max_concurrency": self.max_concurrency,
            "active": self._active,
            "pending": self.pending,
            "peak": self._peak,
            "completed": self._completed,
        }
