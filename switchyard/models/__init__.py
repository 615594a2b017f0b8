"""Data models for Switchyard."""

from .extension import Extension, ExtensionManifest, ExtensionOptions, HybridEntrypoint
from .registry import (
    ApiExtensions,
    EndpointRecord,
    EventBinding,
    HookRecord,
    OperationRecord,
    StorageRecord,
)
from .schema import CollectionSchema, FieldSchema, SchemaOverview

__all__ = [
    "Extension",
    "ExtensionManifest",
    "ExtensionOptions",
    "HybridEntrypoint",
    "ApiExtensions",
    "EndpointRecord",
    "EventBinding",
    "HookRecord",
    "OperationRecord",
    "StorageRecord",
    "CollectionSchema",
    "FieldSchema",
    "SchemaOverview",
]
