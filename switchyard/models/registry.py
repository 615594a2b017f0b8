"""Binding records kept by the extension registrars."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Literal, Optional

BindingType = Literal["filter", "action", "init", "schedule"]


@dataclass
class EventBinding:
    """One reversible registration made by a hook extension."""
    type: BindingType
    name: str
    handler: Callable
    task: Optional[Any] = None  # ScheduledTask for "schedule" bindings


@dataclass
class HookRecord:
    path: Path
    events: list[EventBinding] = field(default_factory=list)


@dataclass
class EndpointRecord:
    path: Path
    mount: str = ""


@dataclass
class StorageRecord:
    path: Path
    config: Any = None


@dataclass
class OperationRecord:
    path: Path
    id: str = ""


@dataclass
class ApiExtensions:
    """The four registries populated by a load cycle."""
    hooks: list[HookRecord] = field(default_factory=list)
    endpoints: list[EndpointRecord] = field(default_factory=list)
    storages: list[StorageRecord] = field(default_factory=list)
    operations: list[OperationRecord] = field(default_factory=list)
