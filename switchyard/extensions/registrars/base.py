"""Base registrar interface.

A registrar wires one extension type into its host subsystem. It is:
- Isolated: a failing extension is logged and skipped, its siblings load
- Reversible: every binding it records has one removal path in ``unregister``
- Whole-cycle: its registry is emptied on unregister, never patched
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Optional

from switchyard.config import Config
from switchyard.core.database import Database
from switchyard.core.emitter import Emitter
from switchyard.core.logging import SwitchyardLogger, get_logger
from switchyard.extensions.loader import ExtensionConfig, ModuleLoader
from switchyard.models.extension import Extension

logger = get_logger("registrar")


@dataclass
class ExtensionContext:
    """Everything hook and endpoint extensions may reach of the host."""
    services: ModuleType
    exceptions: ModuleType
    env: Config
    database: Database
    emitter: Emitter
    logger: SwitchyardLogger
    get_schema: Callable[[], Any]


class Registrar(ABC):
    """Registers the extensions of one kind and can undo it."""

    kind: str = ""

    def __init__(self, loader: ModuleLoader, context: Optional[ExtensionContext] = None):
        self.loader = loader
        self.context = context

    def entrypoint(self, extension: Extension) -> Path:
        return extension.resolve("api")

    async def register(self, extensions: list[Extension]) -> None:
        for extension in extensions:
            try:
                path = self.entrypoint(extension)
                config = self.loader.load(path, self.kind, extension.name)
                await self.wire(extension, path, config)
            except Exception as e:
                logger.registration_failed(self.kind, extension.name, e)

    @abstractmethod
    async def wire(self, extension: Extension, path: Path, config: ExtensionConfig) -> None:
        """Hand one configuration to the host and record the binding."""
        pass

    @abstractmethod
    def unregister(self) -> None:
        """Remove every binding recorded since the last unregister."""
        pass

    @property
    @abstractmethod
    def records(self) -> list:
        pass
