"""Hook registrar - binds filter/action/init handlers and cron schedules."""

import inspect
from pathlib import Path
from typing import Callable, Optional

from switchyard.core.emitter import Emitter
from switchyard.core.errors import InvalidScheduleError
from switchyard.core.logging import get_logger
from switchyard.extensions.loader import HookConfig, ModuleLoader
from switchyard.extensions.registrars.base import ExtensionContext, Registrar
from switchyard.extensions.scheduler import ScheduledTask, validate_cron
from switchyard.models.extension import Extension
from switchyard.models.registry import EventBinding, HookRecord

logger = get_logger("hooks")


class HookRegistrationApi:
    """The ``filter``/``action``/``init``/``schedule`` functions a hook receives."""

    def __init__(self, emitter: Emitter, schedule_enabled: Callable[[], bool]):
        self._emitter = emitter
        self._schedule_enabled = schedule_enabled
        self.bindings: list[EventBinding] = []

    def filter(self, event: str, handler: Callable) -> None:
        self._emitter.on_filter(event, handler)
        self.bindings.append(EventBinding(type="filter", name=event, handler=handler))

    def action(self, event: str, handler: Callable) -> None:
        self._emitter.on_action(event, handler)
        self.bindings.append(EventBinding(type="action", name=event, handler=handler))

    def init(self, event: str, handler: Callable) -> None:
        self._emitter.on_init(event, handler)
        self.bindings.append(EventBinding(type="init", name=event, handler=handler))

    def schedule(self, expression: str, handler: Callable) -> None:
        if not validate_cron(expression):
            error = InvalidScheduleError(expression)
            logger.warning(error.message, error=error.suggestion)
            return

        task = ScheduledTask(expression, handler, self._schedule_enabled)
        task.start()
        self.bindings.append(EventBinding(type="schedule", name=expression, handler=handler, task=task))


def remove_binding(emitter: Emitter, binding: EventBinding) -> None:
    if binding.type == "filter":
        emitter.off_filter(binding.name, binding.handler)
    elif binding.type == "action":
        emitter.off_action(binding.name, binding.handler)
    elif binding.type == "init":
        emitter.off_init(binding.name, binding.handler)
    elif binding.task is not None:
        binding.task.stop()


class HookRegistrar(Registrar):
    kind = "hook"

    def __init__(
        self,
        loader: ModuleLoader,
        context: ExtensionContext,
        emitter: Emitter,
        schedule_enabled: Optional[Callable[[], bool]] = None,
    ):
        super().__init__(loader, context)
        self.emitter = emitter
        self.schedule_enabled = schedule_enabled or (lambda: True)
        self._records: list[HookRecord] = []

    @property
    def records(self) -> list[HookRecord]:
        return self._records

    async def wire(self, extension: Extension, path: Path, config: HookConfig) -> None:
        api = HookRegistrationApi(self.emitter, self.schedule_enabled)
        try:
            result = config.register(api, self.context)
            if inspect.isawaitable(result):
                await result
        except Exception:
            for binding in api.bindings:
                remove_binding(self.emitter, binding)
            raise

        self._records.append(HookRecord(path=path, events=api.bindings))

    def unregister(self) -> None:
        for hook in self._records:
            for binding in hook.events:
                remove_binding(self.emitter, binding)
        self._records = []
