"""Extensions package - discovery, registration and hot reload of extensions."""

from .loader import ModuleLoader
from .manager import ExtensionManager, get_extension_manager

__all__ = [
    "ModuleLoader",
    "ExtensionManager",
    "get_extension_manager",
]
