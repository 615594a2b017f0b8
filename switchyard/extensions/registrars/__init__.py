"""Registrars - one per API extension kind."""

from .base import ExtensionContext, Registrar
from .endpoints import EndpointRegistrar
from .hooks import HookRegistrar, HookRegistrationApi
from .operations import OperationRegistrar, get_internal_operations
from .storages import StorageRegistrar

__all__ = [
    "ExtensionContext",
    "Registrar",
    "EndpointRegistrar",
    "HookRegistrar",
    "HookRegistrationApi",
    "OperationRegistrar",
    "get_internal_operations",
    "StorageRegistrar",
]
