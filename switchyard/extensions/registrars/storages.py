"""Storage registrar - keeps driver configurations for the storage subsystem."""

from pathlib import Path

from switchyard.extensions.loader import StorageConfig
from switchyard.extensions.registrars.base import Registrar
from switchyard.models.extension import Extension
from switchyard.models.registry import StorageRecord


class StorageRegistrar(Registrar):
    kind = "storage"

    def __init__(self, loader, context=None):
        super().__init__(loader, context)
        self._records: list[StorageRecord] = []

    @property
    def records(self) -> list[StorageRecord]:
        return self._records

    async def wire(self, extension: Extension, path: Path, config: StorageConfig) -> None:
        self._records.append(StorageRecord(path=path, config=config.value))

    def unregister(self) -> None:
        self._records = []
