"""App extension bundling.

For each browser-facing type a virtual entry module importing every loaded
extension of that type is compiled with esbuild. Shared dependencies are
left external and pointed at the host's published asset chunks.
"""

import asyncio
import json
import re
from pathlib import Path
from typing import Iterable, Optional, Protocol

from switchyard.core.errors import BundleError, MissingSharedDependencyError
from switchyard.core.logging import get_logger
from switchyard.extensions.constants import APP_EXTENSION_TYPES, APP_SHARED_DEPS
from switchyard.models.extension import Extension

logger = get_logger("bundler")


def generate_extensions_entry(extension_type: str, extensions: Iterable[Extension]) -> str:
    """Source of the virtual entry module for one app extension type."""
    selected = [ext for ext in extensions if ext.type == extension_type]

    lines = [
        f"import e{index} from {json.dumps(ext.resolve('app').as_posix())};"
        for index, ext in enumerate(selected)
    ]
    names = ",".join(f"e{index}" for index in range(len(selected)))
    lines.append(f"export default [{names}];")
    return "\n".join(lines)


def _asset_url(public_url: str, filename: str) -> str:
    base = public_url.split("://", 1)[-1]
    if base != public_url:
        # Absolute URL: keep only its path
        base = "/" + base.partition("/")[2]
    return "/".join([base.rstrip("/"), "admin", "assets", filename])


def get_shared_deps_mapping(
    deps: Iterable[str],
    assets_dir: Path,
    public_url: str = "/",
) -> dict[str, str]:
    """Map each shared dependency to the root-relative URL of its chunk."""
    assets_dir = Path(assets_dir)
    files = sorted(p.name for p in assets_dir.iterdir()) if assets_dir.is_dir() else []

    mapping = {}
    for dep in deps:
        pattern = re.compile(rf"{re.escape(dep.replace('/', '_'))}\.[0-9a-f]{{8}}\.entry\.js")
        filename = next((name for name in files if pattern.fullmatch(name)), None)

        if filename:
            mapping[dep] = _asset_url(public_url, filename)
        else:
            error = MissingSharedDependencyError(dep)
            logger.warning(error.message, component="bundler")

    return mapping


class Compiler(Protocol):
    async def compile(self, entry: str, *, external: list[str], aliases: dict[str, str]) -> str:
        ...


class EsbuildCompiler:
    """Runs the esbuild binary on an in-memory entry module."""

    def __init__(self, executable: str = "esbuild"):
        self.executable = executable

    def command(self, external: Iterable[str]) -> list[str]:
        args = [
            self.executable,
            "--bundle",
            "--format=esm",
            "--minify",
            "--log-level=error",
            "--loader=js",
        ]
        args.extend(f"--external:{dep}" for dep in external)
        return args

    async def compile(self, entry: str, *, external: list[str], aliases: dict[str, str]) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command(external),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise BundleError(
                f'Couldn\'t run "{self.executable}"',
                suggestion="Install esbuild or set SWITCHYARD_ESBUILD",
                cause=e,
            ) from e

        stdout, stderr = await process.communicate(entry.encode("utf-8"))
        if process.returncode != 0:
            raise BundleError(
                "esbuild failed",
                details=stderr.decode("utf-8", errors="replace").strip() or None,
            )

        return rewrite_imports(stdout.decode("utf-8"), aliases)


def rewrite_imports(source: str, aliases: dict[str, str]) -> str:
    """Point bare import specifiers at their aliased URLs."""
    for dep, url in aliases.items():
        pattern = re.compile(rf"(\bfrom\s*|\bimport\s*\(?\s*)([\"']){re.escape(dep)}\2")
        source = pattern.sub(lambda m: f"{m.group(1)}{m.group(2)}{url}{m.group(2)}", source)
    return source


class ExtensionBundler:
    """Builds one bundle per app extension type."""

    def __init__(
        self,
        compiler: Compiler,
        assets_dir: Path,
        public_url: str = "/",
        shared_deps: Optional[list[str]] = None,
        types: Optional[list[str]] = None,
    ):
        self.compiler = compiler
        self.assets_dir = Path(assets_dir)
        self.public_url = public_url
        self.shared_deps = list(shared_deps or APP_SHARED_DEPS)
        self.types = list(types or APP_EXTENSION_TYPES)

    async def generate(self, extensions: list[Extension]) -> dict[str, str]:
        aliases = get_shared_deps_mapping(self.shared_deps, self.assets_dir, self.public_url)
        bundles = {}

        for extension_type in self.types:
            entry = generate_extensions_entry(extension_type, extensions)
            try:
                bundles[extension_type] = await self.compiler.compile(
                    entry, external=self.shared_deps, aliases=aliases
                )
            except Exception as e:
                logger.warning(
                    "Couldn't bundle App extensions",
                    component="bundler",
                    extension_type=extension_type,
                    error=e,
                )

        return bundles
