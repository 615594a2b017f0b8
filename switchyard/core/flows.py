"""Operation registry consumed by the workflow engine."""

import inspect
from typing import Any, Callable, Optional

from switchyard.core.errors import InvalidPayloadError
from switchyard.core.logging import get_logger

logger = get_logger("flows")

OperationHandler = Callable[[dict, dict], Any]


class FlowManager:
    """Holds the operation id -> handler bindings flows execute."""

    def __init__(self):
        self._operations: dict[str, OperationHandler] = {}

    @property
    def operation_ids(self) -> list[str]:
        return list(self._operations)

    def add_operation(self, operation_id: str, handler: OperationHandler) -> None:
        if operation_id in self._operations:
            logger.warning(f'Operation "{operation_id}" is already registered, replacing')
        self._operations[operation_id] = handler

    def get_operation(self, operation_id: str) -> Optional[OperationHandler]:
        return self._operations.get(operation_id)

    def clear_operations(self) -> None:
        self._operations.clear()

    async def run_operation(
        self,
        operation_id: str,
        options: Optional[dict] = None,
        context: Optional[dict] = None,
    ) -> Any:
        """Execute a registered operation with its options."""
        handler = self._operations.get(operation_id)
        if handler is None:
            raise InvalidPayloadError(f'Operation "{operation_id}" doesn\'t exist')

        result = handler(options or {}, context or {})
        if inspect.isawaitable(result):
            result = await result
        return result


_flow_manager: Optional[FlowManager] = None


def get_flow_manager() -> FlowManager:
    """Get the process-wide flow manager."""
    global _flow_manager
    if _flow_manager is None:
        _flow_manager = FlowManager()
    return _flow_manager
