"""Operation registrar - feeds built-in and extension operations to the flow manager."""

from pathlib import Path
from typing import Optional

from switchyard.core.flows import FlowManager
from switchyard.extensions.constants import API_ENTRYPOINT
from switchyard.extensions.loader import ModuleLoader, OperationConfig
from switchyard.extensions.registrars.base import Registrar
from switchyard.models.extension import Extension
from switchyard.models.registry import OperationRecord

# One subdirectory per built-in operation, each with an index.py
INTERNAL_OPERATIONS_DIR = Path(__file__).resolve().parent.parent.parent / "operations"


def get_internal_operations(directory: Path = INTERNAL_OPERATIONS_DIR) -> list[Extension]:
    if not directory.is_dir():
        return []

    return [
        Extension(name=entry.name, type="operation", path=entry, entrypoint=API_ENTRYPOINT)
        for entry in sorted(directory.iterdir(), key=lambda p: p.name)
        if entry.is_dir() and not entry.name.startswith((".", "_")) and (entry / API_ENTRYPOINT).is_file()
    ]


class OperationRegistrar(Registrar):
    """Registers built-in operations first, then ``operation`` extensions.

    Operations are keyed by id, so unregistering clears the flow manager's
    whole registry.
    """

    kind = "operation"

    def __init__(
        self,
        loader: ModuleLoader,
        flow_manager: FlowManager,
        internal_dir: Optional[Path] = None,
    ):
        super().__init__(loader)
        self.flow_manager = flow_manager
        self.internal_dir = internal_dir or INTERNAL_OPERATIONS_DIR
        self._records: list[OperationRecord] = []

    @property
    def records(self) -> list[OperationRecord]:
        return self._records

    async def register(self, extensions: list[Extension]) -> None:
        await super().register(get_internal_operations(self.internal_dir) + list(extensions))

    async def wire(self, extension: Extension, path: Path, config: OperationConfig) -> None:
        self.flow_manager.add_operation(config.id, config.handler)
        self._records.append(OperationRecord(path=path, id=config.id))

    def unregister(self) -> None:
        self.flow_manager.clear_operations()
        self._records = []
