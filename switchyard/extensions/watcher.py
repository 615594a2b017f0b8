"""Hot reload watcher built on watchdog.

Two kinds of paths are watched:
- glob patterns over local extension entrypoints, fixed at construction
- explicit files (the host manifest and package extension entrypoints),
  added and removed as extensions come and go
"""

import asyncio
import os
from pathlib import Path, PurePath
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from switchyard.core.logging import get_logger
from switchyard.extensions.constants import (
    API_ENTRYPOINT,
    APP_ENTRYPOINT,
    EXTENSION_MANIFEST_FILE,
    HYBRID_ENTRYPOINT,
    HYBRID_EXTENSION_TYPES,
    PACK_EXTENSION_TYPE,
    API_EXTENSION_TYPES,
    pluralize,
)
from switchyard.models.extension import Extension

logger = get_logger("watcher")

WATCHED_EVENTS = ("created", "modified", "deleted", "moved")


def local_extension_patterns(root: Path, types: Iterable[str]) -> list[str]:
    """Glob patterns matching local extension entrypoints."""
    root = Path(root).resolve()
    patterns = []
    for extension_type in types:
        type_dir = root / pluralize(extension_type)
        if extension_type in HYBRID_EXTENSION_TYPES:
            patterns.append(str(type_dir / "*" / HYBRID_ENTRYPOINT["app"]))
            patterns.append(str(type_dir / "*" / HYBRID_ENTRYPOINT["api"]))
        elif extension_type in API_EXTENSION_TYPES:
            patterns.append(str(type_dir / "*" / API_ENTRYPOINT))
        else:
            patterns.append(str(type_dir / "*" / APP_ENTRYPOINT))
    return patterns


def to_package_extension_paths(extensions: Iterable[Extension]) -> list[Path]:
    """Files to watch for package (non-local) extensions."""
    paths = []
    for extension in extensions:
        if extension.local:
            continue
        if extension.type == PACK_EXTENSION_TYPE:
            paths.append((extension.path / EXTENSION_MANIFEST_FILE).resolve())
        elif extension.is_hybrid:
            paths.append(extension.resolve("app"))
            paths.append(extension.resolve("api"))
        else:
            paths.append(extension.resolve())
    return paths


def _pattern_root(pattern: str) -> Path:
    parts = []
    for part in PurePath(pattern).parts:
        if any(char in part for char in "*?["):
            break
        parts.append(part)
    return Path(*parts)


class _ChangeHandler(FileSystemEventHandler):
    """Forwards relevant file events to the watcher."""

    def __init__(self, watcher: "ExtensionWatcher"):
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory or event.event_type not in WATCHED_EVENTS:
            return

        paths = [event.src_path]
        if event.event_type == "moved":
            paths.append(event.dest_path)

        if any(self.watcher.matches(os.fsdecode(path)) for path in paths):
            self.watcher.notify()


class ExtensionWatcher:
    """Calls ``on_change`` on the event loop when a watched file changes.

    Bursts of events are not debounced; each one produces a call.
    """

    def __init__(
        self,
        files: Iterable[Path],
        patterns: Iterable[str],
        on_change: Callable[[], object],
        observer_factory: Callable = Observer,
    ):
        self._files: set[Path] = {Path(f).resolve() for f in files}
        self._patterns = list(patterns)
        self._on_change = on_change
        self._observer_factory = observer_factory
        self._observer = None
        self._handler = _ChangeHandler(self)
        self._watches: dict[tuple[Path, bool], object] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    @property
    def tracked_paths(self) -> set[Path]:
        return set(self._files)

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def matches(self, path: str | Path) -> bool:
        path = Path(path).resolve()
        if path in self._files:
            return True
        return any(path.match(pattern) for pattern in self._patterns)

    def notify(self) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._on_change)

    def start(self) -> None:
        if self._observer is not None:
            return

        self._loop = asyncio.get_running_loop()
        self._observer = self._observer_factory()
        self._sync_watches()
        self._observer.start()
        logger.info("Watching extensions for changes...", component="watcher")

    def stop(self) -> None:
        """Stop the observer thread and wait for it."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
        self._watches.clear()

    def add(self, paths: Iterable[Path]) -> None:
        self._files.update(Path(p).resolve() for p in paths)
        self._sync_watches()

    def unwatch(self, paths: Iterable[Path]) -> None:
        self._files.difference_update(Path(p).resolve() for p in paths)
        self._sync_watches()

    def _wanted_directories(self) -> set[tuple[Path, bool]]:
        wanted = {(_pattern_root(pattern), True) for pattern in self._patterns}
        wanted.update((path.parent, False) for path in self._files)
        return {(directory, recursive) for directory, recursive in wanted if directory.is_dir()}

    def _sync_watches(self) -> None:
        if self._observer is None:
            return

        wanted = self._wanted_directories()

        for key in set(self._watches) - wanted:
            self._observer.unschedule(self._watches.pop(key))

        for directory, recursive in wanted - set(self._watches):
            self._watches[(directory, recursive)] = self._observer.schedule(
                self._handler, str(directory), recursive=recursive
            )
