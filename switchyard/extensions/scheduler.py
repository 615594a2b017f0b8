"""Recurring tasks created by ``schedule`` hooks."""

import asyncio
import inspect
from datetime import datetime
from typing import Callable, Iterator, Optional

from croniter import croniter

from switchyard.core.errors import InvalidScheduleError, ScheduledHandlerError
from switchyard.core.logging import get_logger

logger = get_logger("scheduler")


def validate_cron(expression: str) -> bool:
    return isinstance(expression, str) and croniter.is_valid(expression)


class ScheduledTask:
    """Invokes a handler at every tick of a cron expression.

    ``is_enabled`` is consulted on each tick; while it returns False the
    tick passes without calling the handler. Handler errors are logged and
    the task keeps running.
    """

    def __init__(
        self,
        expression: str,
        handler: Callable,
        is_enabled: Callable[[], bool] = lambda: True,
    ):
        if not validate_cron(expression):
            raise InvalidScheduleError(expression)
        self.expression = expression
        self.handler = handler
        self.is_enabled = is_enabled
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ticks(self, base: Optional[datetime] = None) -> Iterator[datetime]:
        """Successive fire times after ``base``, each strictly after the last."""
        schedule = croniter(self.expression, base or datetime.now())
        while True:
            yield schedule.get_next(datetime)

    def next_fire(self, base: Optional[datetime] = None) -> datetime:
        return next(self.ticks(base))

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _loop(self) -> None:
        for tick in self.ticks():
            delay = (tick - datetime.now()).total_seconds()
            await asyncio.sleep(max(delay, 0))
            await self.fire()

    async def fire(self) -> None:
        """Run one tick."""
        if not self.is_enabled():
            return

        try:
            result = self.handler()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            error = ScheduledHandlerError(self.expression, cause=e)
            logger.warning(error.message, error=error.details, exc_info=e)
