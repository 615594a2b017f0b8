"""Extension manager - owns the extension set and drives load/unload/reload.

Lifetimes of the collaborators:
- ``emitter`` is the host-wide bus and outlives every cycle; hooks bind to it
  and unregister precisely what they bound.
- ``api_emitter`` is handed to extensions through their context and is
  cleared wholesale on every unload.
- ``loader`` imports extension code into a per-cycle context discarded on
  unload.
"""

import asyncio
from pathlib import Path
from typing import Callable, Optional, Union

from fastapi import APIRouter

from switchyard.config import Config, get_config
from switchyard.core import errors as exceptions
from switchyard.core import services
from switchyard.core.database import Database, get_database
from switchyard.core.emitter import Emitter, get_emitter
from switchyard.core.flows import FlowManager, get_flow_manager
from switchyard.core.job_queue import JobQueue
from switchyard.core.logging import get_logger
from switchyard.extensions.bundler import EsbuildCompiler, ExtensionBundler
from switchyard.extensions.constants import allowed_types
from switchyard.extensions.discovery import ensure_extension_dirs, get_extensions
from switchyard.extensions.loader import ModuleLoader
from switchyard.extensions.registrars import (
    EndpointRegistrar,
    ExtensionContext,
    HookRegistrar,
    OperationRegistrar,
    StorageRegistrar,
)
from switchyard.extensions.watcher import (
    ExtensionWatcher,
    local_extension_patterns,
    to_package_extension_paths,
)
from switchyard.models.extension import Extension, ExtensionOptions
from switchyard.models.registry import ApiExtensions

logger = get_logger("extensions")


class ExtensionManager:
    """Single source of truth for whether extensions are active."""

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        emitter: Optional[Emitter] = None,
        flow_manager: Optional[FlowManager] = None,
        loader: Optional[ModuleLoader] = None,
        bundler: Optional[ExtensionBundler] = None,
        database: Optional[Database] = None,
        watcher_factory: Callable[..., ExtensionWatcher] = ExtensionWatcher,
    ):
        self.config = config or get_config()
        self.emitter = emitter or get_emitter()
        self.flow_manager = flow_manager or get_flow_manager()
        self.loader = loader or ModuleLoader()
        self.database = database or get_database()
        self.bundler = bundler or ExtensionBundler(
            EsbuildCompiler(self.config.extensions.esbuild),
            self.config.extensions.app_assets_dir,
            self.config.public_url,
        )
        self.watcher_factory = watcher_factory

        self.api_emitter = Emitter()
        self.endpoint_router = APIRouter()

        self.options = self.default_options()
        self.is_loaded = False
        self.extensions: list[Extension] = []
        self.app_extensions: dict[str, str] = {}
        self.watcher: Optional[ExtensionWatcher] = None

        self._reload_queue = JobQueue()
        self._pending_reload: Optional[asyncio.Future] = None

        self.context = ExtensionContext(
            services=services,
            exceptions=exceptions,
            env=self.config,
            database=self.database,
            emitter=self.api_emitter,
            logger=get_logger("extension"),
            get_schema=self.database.get_schema,
        )

        self.hooks = HookRegistrar(
            self.loader, self.context, self.emitter, lambda: self.options.schedule
        )
        self.endpoints = EndpointRegistrar(self.loader, self.context, self.endpoint_router)
        self.storages = StorageRegistrar(self.loader)
        self.operations = OperationRegistrar(self.loader, self.flow_manager)

    @property
    def types(self) -> list[str]:
        return allowed_types(self.config.extensions.serve_app)

    def default_options(self) -> ExtensionOptions:
        return ExtensionOptions(
            schedule=True,
            watch=self.config.extensions.auto_reload and not self.config.is_development,
        )

    async def initialize(self, options: Union[ExtensionOptions, dict, None] = None) -> None:
        if isinstance(options, ExtensionOptions):
            options = options.model_dump(exclude_unset=True)
        self.options = ExtensionOptions(**{**self.default_options().model_dump(), **(options or {})})

        self._initialize_watcher()

        if not self.is_loaded:
            await self.load()
            self._update_watched_extensions(self.extensions)
            logger.extensions_loaded(self.get_extensions_list())

    async def load(self) -> None:
        cfg = self.config.extensions

        try:
            self.extensions = await asyncio.to_thread(
                get_extensions, cfg.path, cfg.host_manifest, cfg.serve_app
            )
        except Exception as e:
            logger.warning("Couldn't load extensions", error=e)
            self.extensions = []

        self.loader.begin_cycle()

        await self.hooks.register(self._of_type("hook"))
        await self.endpoints.register(self._of_type("endpoint"))
        await self.storages.register(self._of_type("storage"))
        await self.operations.register(self._of_type("operation"))

        if cfg.serve_app:
            self.app_extensions = await self.bundler.generate(self.extensions)

        self.is_loaded = True

    async def unload(self) -> None:
        self.hooks.unregister()
        self.endpoints.unregister()
        self.storages.unregister()
        self.operations.unregister()

        self.api_emitter.off_all()
        self.loader.end_cycle()

        if self.config.extensions.serve_app:
            self.app_extensions = {}

        self.is_loaded = False

    def request_reload(self) -> Optional[asyncio.Future]:
        """Queue a reload; a reload that hasn't started yet absorbs new requests."""
        if not self.is_loaded and not self._reload_queue.running:
            logger.warning("Extensions have to be loaded before they can be reloaded")
            return None

        if self._pending_reload is not None and not self._pending_reload.done():
            return self._pending_reload

        self._pending_reload = self._reload_queue.enqueue(self._reload)
        return self._pending_reload

    async def reload(self) -> None:
        future = self.request_reload()
        if future is not None:
            await future

    async def _reload(self) -> None:
        self._pending_reload = None
        if not self.is_loaded:
            logger.warning("Extensions were unloaded before a queued reload could run")
            return

        previous = list(self.extensions)

        await self.unload()
        await self.load()

        added = [ext for ext in self.extensions if not any(ext.same_as(old) for old in previous)]
        removed = [old for old in previous if not any(old.same_as(ext) for ext in self.extensions)]

        self._update_watched_extensions(added, removed)
        logger.extensions_changed(
            (ext.name for ext in added),
            (ext.name for ext in removed),
        )

    async def shutdown(self) -> None:
        if self.watcher is not None:
            await asyncio.to_thread(self.watcher.stop)
            self.watcher = None

        await self._reload_queue.drain()

        if self.is_loaded:
            await self.unload()

    def get_extensions_list(self, extension_type: Optional[str] = None) -> list[str]:
        return [ext.name for ext in self.extensions if extension_type in (None, ext.type)]

    def get_app_extensions(self, extension_type: str) -> Optional[str]:
        return self.app_extensions.get(extension_type)

    def get_api_extensions(self) -> ApiExtensions:
        return ApiExtensions(
            hooks=list(self.hooks.records),
            endpoints=list(self.endpoints.records),
            storages=list(self.storages.records),
            operations=list(self.operations.records),
        )

    def get_endpoint_router(self) -> APIRouter:
        return self.endpoint_router

    def _of_type(self, extension_type: str) -> list[Extension]:
        return [ext for ext in self.extensions if ext.type == extension_type]

    def _initialize_watcher(self) -> None:
        if not self.options.watch or self.watcher is not None:
            return

        cfg = self.config.extensions
        try:
            ensure_extension_dirs(cfg.path, self.types)
        except exceptions.DiscoveryError as e:
            logger.warning("Couldn't prepare extension folders for watching", error=e)

        self.watcher = self.watcher_factory(
            files=[Path(cfg.host_manifest)],
            patterns=local_extension_patterns(cfg.path, self.types),
            on_change=self.request_reload,
        )
        self.watcher.start()

    def _update_watched_extensions(
        self,
        added: list[Extension],
        removed: Optional[list[Extension]] = None,
    ) -> None:
        if self.watcher is None:
            return
        self.watcher.add(to_package_extension_paths(added))
        self.watcher.unwatch(to_package_extension_paths(removed or []))


_manager: Optional[ExtensionManager] = None


def get_extension_manager() -> ExtensionManager:
    """Get the process-wide extension manager."""
    global _manager
    if _manager is None:
        _manager = ExtensionManager()
    return _manager


def reset_extension_manager() -> None:
    global _manager
    _manager = None
