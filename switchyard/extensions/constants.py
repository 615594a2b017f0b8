"""Extension types, naming conventions and shared dependencies."""

import re

APP_SHARED_DEPS = ["@switchyard/extensions-sdk", "vue", "vue-router", "vue-i18n", "pinia"]

APP_OR_HYBRID_EXTENSION_TYPES_BASE = ["interface", "display", "layout", "module", "panel"]
API_EXTENSION_TYPES_BASE = ["hook", "endpoint", "storage"]
HYBRID_EXTENSION_TYPES = ["operation"]

APP_EXTENSION_TYPES = APP_OR_HYBRID_EXTENSION_TYPES_BASE + HYBRID_EXTENSION_TYPES
API_EXTENSION_TYPES = API_EXTENSION_TYPES_BASE + HYBRID_EXTENSION_TYPES
EXTENSION_TYPES = APP_OR_HYBRID_EXTENSION_TYPES_BASE + API_EXTENSION_TYPES_BASE + HYBRID_EXTENSION_TYPES

PACK_EXTENSION_TYPE = "pack"
EXTENSION_PACKAGE_TYPES = EXTENSION_TYPES + [PACK_EXTENSION_TYPE]

EXTENSION_NAME_REGEX = re.compile(
    r"^(?:[a-z0-9][a-z0-9._-]*-)?switchyard[-_]extension[-_][a-z0-9][a-z0-9._-]*$",
    re.IGNORECASE,
)

ENTRY_POINT_GROUP = "switchyard.extensions"
EXTENSION_MANIFEST_FILE = "extension.json"

API_ENTRYPOINT = "index.py"
APP_ENTRYPOINT = "index.js"
HYBRID_ENTRYPOINT = {"app": "app.js", "api": "api.py"}


def pluralize(extension_type: str) -> str:
    return f"{extension_type}s"


def is_extension_package(name: str) -> bool:
    return EXTENSION_NAME_REGEX.match(name) is not None


def allowed_types(serve_app: bool) -> list[str]:
    """Types discovery scans for, given whether app bundles are served."""
    return EXTENSION_TYPES if serve_app else API_EXTENSION_TYPES
