"""FIFO job queue executing one coroutine job at a time."""

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable, Optional

from switchyard.core.logging import get_logger

logger = get_logger("job_queue")

Job = Callable[[], Awaitable[Any]]


class JobQueue:
    """Serializes async jobs on the running event loop.

    Jobs run in the order they were enqueued; the next job starts only after
    the previous one completed. A running job is never cancelled by the queue.
    """

    def __init__(self):
        self._jobs: deque[tuple[Job, asyncio.Future]] = deque()
        self._worker: Optional[asyncio.Task] = None

    @property
    def size(self) -> int:
        """Number of jobs waiting to start."""
        return len(self._jobs)

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def enqueue(self, job: Job) -> asyncio.Future:
        """Queue a job and return a future resolving with its result.

        Must be called from the event loop thread.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._jobs.append((job, future))

        if not self.running:
            self._worker = loop.create_task(self._run())

        return future

    async def drain(self) -> None:
        """Wait until every queued job has finished."""
        while self.running:
            await asyncio.shield(self._worker)

    async def _run(self) -> None:
        while self._jobs:
            job, future = self._jobs.popleft()
            try:
                result = await job()
            except Exception as e:
                logger.error("Queued job failed", error=e, exc_info=e)
                if not future.done():
                    future.set_exception(e)
                    # Already logged; callers that never await the future stay quiet
                    future.exception()
            else:
                if not future.done():
                    future.set_result(result)
