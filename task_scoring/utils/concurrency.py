import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, TypeVar

T = TypeVar("T")


class AsyncToThreadRunner:
    """Run blocking store SDK calls in a background thread with bounded concurrency.

    Only the number of in-flight calls is capped. No per-document lock is taken;
    concurrent writers for the same score are last-write-wins.
    """

    def __init__(self, max_concurrency: int = 8):
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be greater than zero")
        self._max_concurrency = max_concurrency
        self._semaphore: asyncio.Semaphore | None = None

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Acquire one of the bounded worker slots."""
        # Created lazily so the semaphore binds to the running loop.
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrency)
        async with self._semaphore:
            yield

    async def run(self, func: Callable[..., T], *args, **kwargs) -> T:
        async with self.slot():
            return await asyncio.to_thread(func, *args, **kwargs)
