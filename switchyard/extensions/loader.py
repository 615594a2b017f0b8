"""Extension loader - imports extension modules and normalizes their exports.

Every load cycle imports extension code through its own ``LoaderContext``.
Module names are unique to the cycle and dropped from ``sys.modules`` when
the cycle ends, so the next cycle executes the files afresh.
"""

import hashlib
import importlib.util
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Optional

from switchyard.core.errors import RegistrationError
from switchyard.core.logging import get_logger

logger = get_logger("loader")


@dataclass
class HookConfig:
    register: Callable


@dataclass
class EndpointConfig:
    handler: Callable
    id: Optional[str] = None


@dataclass
class StorageConfig:
    value: Any


@dataclass
class OperationConfig:
    id: str
    handler: Callable


ExtensionConfig = HookConfig | EndpointConfig | StorageConfig | OperationConfig


def get_module_default(module: Any) -> Any:
    """Unwrap a ``default`` export; bare exports are returned as they are."""
    return getattr(module, "default", module)


def _field(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def normalize_config(kind: str, exported: Any, name: str) -> ExtensionConfig:
    """Turn an extension's export into the typed configuration for its kind."""
    if kind == "hook":
        register = _field(exported, "register")
        if callable(register):
            return HookConfig(register=register)
        if callable(exported):
            return HookConfig(register=exported)
        raise RegistrationError("Hook export must be callable", extension_name=name)

    if kind == "endpoint":
        if callable(exported) and not isinstance(exported, Mapping) and _field(exported, "handler") is None:
            return EndpointConfig(handler=exported)
        handler = _field(exported, "handler")
        if not callable(handler):
            raise RegistrationError("Endpoint export needs a callable handler", extension_name=name)
        return EndpointConfig(handler=handler, id=_field(exported, "id"))

    if kind == "operation":
        operation_id = _field(exported, "id")
        handler = _field(exported, "handler")
        if not isinstance(operation_id, str) or not operation_id or not callable(handler):
            raise RegistrationError("Operation export needs an id and a handler", extension_name=name)
        return OperationConfig(id=operation_id, handler=handler)

    if kind == "storage":
        return StorageConfig(value=exported)

    raise RegistrationError(f'Unknown extension kind "{kind}"', extension_name=name)


class LoaderContext:
    """Modules imported during one load cycle."""

    def __init__(self, cycle: int):
        self.cycle = cycle
        self._modules: dict[Path, str] = {}

    @property
    def module_names(self) -> list[str]:
        return list(self._modules.values())

    def _module_name(self, path: Path) -> str:
        digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
        return f"_switchyard_ext_{self.cycle}_{digest}"

    def import_path(self, path: Path) -> ModuleType:
        """Execute the file at ``path`` as a fresh module of this cycle.

        Cached bytecode is reused only when the source's mtime and size
        both still match.
        """
        path = Path(path).resolve()
        if not path.is_file():
            raise RegistrationError("Entrypoint doesn't exist", path=str(path))

        module_name = self._module_name(path)
        if module_name in sys.modules:
            return sys.modules[module_name]

        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise RegistrationError("Entrypoint can't be imported", path=str(path))

        module = importlib.util.module_from_spec(spec)
        # Visible in sys.modules while it executes
        sys.modules[module_name] = module
        self._modules[path] = module_name
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            self._modules.pop(path, None)
            raise
        return module

    def discard(self) -> None:
        for module_name in self._modules.values():
            sys.modules.pop(module_name, None)
        self._modules.clear()


class ModuleLoader:
    """Loads extension entrypoints into typed configurations."""

    def __init__(self):
        self._cycle = 0
        self._context: Optional[LoaderContext] = None

    @property
    def context(self) -> Optional[LoaderContext]:
        return self._context

    def begin_cycle(self) -> LoaderContext:
        if self._context is not None:
            self._context.discard()
        self._cycle += 1
        self._context = LoaderContext(self._cycle)
        return self._context

    def end_cycle(self) -> None:
        if self._context is not None:
            self._context.discard()
            self._context = None

    def load(self, path: Path, kind: str, name: str = "") -> ExtensionConfig:
        if self._context is None:
            self.begin_cycle()
        module = self._context.import_path(path)
        return normalize_config(kind, get_module_default(module), name or Path(path).parent.name)
