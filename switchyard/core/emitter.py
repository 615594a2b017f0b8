"""Event emitter for filter, action and init events.

The module-level instance returned by ``get_emitter()`` is the host-wide
bus and lives for the whole process. The extension manager owns a second,
per-cycle instance that extensions use among themselves and that is
cleared wholesale on every unload.
"""

import asyncio
import inspect
from collections import defaultdict
from typing import Any, Callable, Literal, Optional, Union

from switchyard.core.logging import get_logger

logger = get_logger("emitter")

EventKind = Literal["filter", "action", "init"]
EventNames = Union[str, list[str], tuple[str, ...]]


async def _call(handler: Callable, *args: Any) -> Any:
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _names(event: EventNames) -> list[str]:
    return [event] if isinstance(event, str) else list(event)


class Emitter:
    """Publish/subscribe channel for filter, action and init handlers."""

    def __init__(self):
        self._handlers: dict[EventKind, dict[str, list[Callable]]] = {
            "filter": defaultdict(list),
            "action": defaultdict(list),
            "init": defaultdict(list),
        }

    def _on(self, kind: EventKind, event: str, handler: Callable) -> None:
        self._handlers[kind][event].append(handler)

    def _off(self, kind: EventKind, event: str, handler: Callable) -> None:
        handlers = self._handlers[kind].get(event)
        if not handlers:
            return
        # Remove a single registration, matched by identity
        for index, registered in enumerate(handlers):
            if registered is handler:
                del handlers[index]
                break
        if not handlers:
            del self._handlers[kind][event]

    def on_filter(self, event: str, handler: Callable) -> None:
        self._on("filter", event, handler)

    def on_action(self, event: str, handler: Callable) -> None:
        self._on("action", event, handler)

    def on_init(self, event: str, handler: Callable) -> None:
        self._on("init", event, handler)

    def off_filter(self, event: str, handler: Callable) -> None:
        self._off("filter", event, handler)

    def off_action(self, event: str, handler: Callable) -> None:
        self._off("action", event, handler)

    def off_init(self, event: str, handler: Callable) -> None:
        self._off("init", event, handler)

    def off_all(self) -> None:
        """Drop every registered handler."""
        for handlers in self._handlers.values():
            handlers.clear()

    def listener_count(self, event: str, kind: Optional[EventKind] = None) -> int:
        kinds = [kind] if kind else list(self._handlers)
        return sum(len(self._handlers[k].get(event, ())) for k in kinds)

    async def emit_filter(
        self,
        event: EventNames,
        payload: Any,
        meta: Optional[dict] = None,
        context: Optional[dict] = None,
    ) -> Any:
        """Run filter handlers in registration order.

        A handler returning a value other than ``None`` replaces the payload
        for the handlers that follow. Errors propagate so that a filter can
        reject the operation it guards.
        """
        meta = meta or {}
        context = context or {}

        for name in _names(event):
            for handler in list(self._handlers["filter"].get(name, ())):
                updated = await _call(handler, payload, meta, context)
                if updated is not None:
                    payload = updated

        return payload

    async def emit_action(
        self,
        event: EventNames,
        meta: Optional[dict] = None,
        context: Optional[dict] = None,
    ) -> None:
        """Notify action handlers concurrently; failures are logged."""
        meta = meta or {}
        context = context or {}

        calls = []
        for name in _names(event):
            for handler in list(self._handlers["action"].get(name, ())):
                calls.append(self._guarded(name, handler, meta, context))

        if calls:
            await asyncio.gather(*calls)

    async def emit_init(self, event: str, meta: Optional[dict] = None) -> None:
        """Run init handlers sequentially; failures are logged."""
        meta = meta or {}
        for handler in list(self._handlers["init"].get(event, ())):
            await self._guarded(event, handler, meta)

    async def _guarded(self, name: str, handler: Callable, *args: Any) -> None:
        try:
            await _call(handler, *args)
        except Exception as e:
            logger.warning(f'An error was thrown while executing "{name}"', event=name, error=e)


# Host-wide bus
_emitter: Optional[Emitter] = None


def get_emitter() -> Emitter:
    """Get the process-wide event bus."""
    global _emitter
    if _emitter is None:
        _emitter = Emitter()
    return _emitter
