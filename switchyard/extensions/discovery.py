"""Extension discovery.

Extensions come from two sources, listed in this order:

- Package extensions: distributions the host manifest depends on whose
  names follow the ``switchyard-extension-*`` convention. Each exposes an
  entry point in the ``switchyard.extensions`` group; the entry point's
  module directory carries an ``extension.json`` manifest.
- Local extensions: subdirectories of ``<root>/<type>s``.
"""

import json
import re
import tomllib
from importlib.metadata import PackageNotFoundError, distribution
from importlib.util import find_spec
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from switchyard.core.errors import DiscoveryError
from switchyard.core.logging import get_logger
from switchyard.extensions.constants import (
    API_ENTRYPOINT,
    API_EXTENSION_TYPES,
    APP_ENTRYPOINT,
    ENTRY_POINT_GROUP,
    EXTENSION_MANIFEST_FILE,
    HYBRID_ENTRYPOINT,
    HYBRID_EXTENSION_TYPES,
    PACK_EXTENSION_TYPE,
    allowed_types,
    is_extension_package,
    pluralize,
)
from switchyard.models.extension import Extension, ExtensionManifest, HybridEntrypoint

logger = get_logger("discovery")

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def ensure_extension_dirs(root: Path, types: Iterable[str]) -> None:
    """Create the per-type extension directories under root."""
    for extension_type in types:
        directory = Path(root) / pluralize(extension_type)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DiscoveryError(
                f'Extension folder "{directory}" couldn\'t be opened',
                source=str(directory),
                cause=e,
            ) from e


def requirement_name(requirement: str) -> Optional[str]:
    """Project name of a PEP 508 requirement string."""
    match = _REQUIREMENT_NAME.match(requirement)
    return match.group(1) if match else None


def read_manifest_dependencies(manifest: Path) -> list[str]:
    """Names listed under ``[project].dependencies`` of the host manifest."""
    manifest = Path(manifest)
    if not manifest.exists():
        return []

    try:
        with open(manifest, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise DiscoveryError(
            "Host manifest couldn't be read",
            source=str(manifest),
            cause=e,
        ) from e

    dependencies = data.get("project", {}).get("dependencies", [])
    if not isinstance(dependencies, list):
        raise DiscoveryError("Host dependencies must be a list", source=str(manifest))

    names = (requirement_name(dep) for dep in dependencies if isinstance(dep, str))
    return [name for name in names if name]


def load_package_extension(name: str) -> tuple[Extension, list[str]]:
    """Resolve one extension distribution.

    Returns the descriptor plus the names of extension distributions it
    requires (the children of a pack).
    """
    try:
        dist = distribution(name)
    except PackageNotFoundError as e:
        raise DiscoveryError(f'Package "{name}" isn\'t installed', source=name, cause=e) from e

    entry_point = next(
        (ep for ep in dist.entry_points if ep.group == ENTRY_POINT_GROUP),
        None,
    )
    if entry_point is None:
        raise DiscoveryError(
            f'Package "{name}" has no "{ENTRY_POINT_GROUP}" entry point',
            source=name,
        )

    spec = find_spec(entry_point.module)
    if spec is None or spec.origin is None:
        raise DiscoveryError(f'Module "{entry_point.module}" couldn\'t be found', source=name)

    path = Path(spec.origin).parent
    manifest_file = path / EXTENSION_MANIFEST_FILE
    try:
        manifest = ExtensionManifest.model_validate(json.loads(manifest_file.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise DiscoveryError(
            f'Extension manifest of "{name}" is invalid',
            source=str(manifest_file),
            cause=e,
        ) from e

    children = []
    if manifest.type == PACK_EXTENSION_TYPE:
        requirements = (requirement_name(req) for req in (dist.requires or []))
        children = [req for req in requirements if req and is_extension_package(req)]

    extension = Extension(
        name=name,
        type=manifest.type,
        path=path,
        entrypoint=manifest.path,
        local=False,
        version=dist.version,
        host=manifest.host,
        children=children,
    )
    return extension, children


def get_package_extensions(manifest: Path, types: Iterable[str]) -> list[Extension]:
    """Extensions declared in the host manifest, packs followed by their children."""
    types = set(types)
    extensions: list[Extension] = []
    seen: set[str] = set()

    def visit(names: list[str]) -> None:
        for name in names:
            key = name.lower().replace("_", "-")
            if key in seen:
                continue
            seen.add(key)

            try:
                extension, children = load_package_extension(name)
            except DiscoveryError as e:
                logger.warning(f'Couldn\'t load extension package "{name}"', extension=name, error=e)
                continue

            if extension.type not in types:
                logger.debug(f'Skipping "{name}" of type "{extension.type}"', extension=name)
                continue

            extensions.append(extension)
            visit(children)

    visit([name for name in read_manifest_dependencies(manifest) if is_extension_package(name)])
    return extensions


def _local_entrypoint(extension_type: str) -> str | HybridEntrypoint:
    if extension_type in HYBRID_EXTENSION_TYPES:
        return HybridEntrypoint(**HYBRID_ENTRYPOINT)
    if extension_type in API_EXTENSION_TYPES:
        return API_ENTRYPOINT
    return APP_ENTRYPOINT


def get_local_extensions(root: Path, types: Iterable[str]) -> list[Extension]:
    """Extensions found in the per-type directories under root."""
    extensions = []

    for extension_type in types:
        type_dir = Path(root) / pluralize(extension_type)
        if not type_dir.is_dir():
            raise DiscoveryError(f'Extension folder "{type_dir}" doesn\'t exist', source=str(type_dir))

        for directory in sorted(type_dir.iterdir(), key=lambda p: p.name):
            if not directory.is_dir() or directory.name.startswith((".", "__")):
                continue

            extension = Extension(
                name=directory.name,
                type=extension_type,
                path=directory.resolve(),
                entrypoint=_local_entrypoint(extension_type),
                local=True,
            )

            parts = ["app", "api"] if extension.is_hybrid else [None]
            missing = [p for p in (extension.resolve(part) for part in parts) if not p.is_file()]
            if missing:
                logger.warning(
                    f'Extension "{directory.name}" is missing its entrypoint',
                    extension=directory.name,
                    extension_type=extension_type,
                    path=missing[0],
                )
                continue

            extensions.append(extension)

    return extensions


def get_extensions(
    root: Path,
    manifest: Path,
    serve_app: bool,
) -> list[Extension]:
    """Discover every extension, package extensions first.

    A local extension shadows a package extension of the same type and name.
    """
    types = allowed_types(serve_app)
    package_types = types + [PACK_EXTENSION_TYPE]

    ensure_extension_dirs(root, types)

    package_extensions = get_package_extensions(manifest, package_types)
    local_extensions = get_local_extensions(root, types)

    local_keys = {(ext.type, ext.name) for ext in local_extensions}
    kept = []
    for extension in package_extensions:
        if (extension.type, extension.name) in local_keys:
            logger.warning(
                f'Local extension "{extension.name}" overrides the installed package',
                extension=extension.name,
                extension_type=extension.type,
            )
            continue
        kept.append(extension)

    return kept + local_extensions
