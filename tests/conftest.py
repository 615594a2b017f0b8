"""Pytest configuration and shared fixtures."""

import tempfile
import textwrap
from pathlib import Path
from typing import Callable, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

import switchyard.config as config_module
import switchyard.core.database as database_module
import switchyard.core.emitter as emitter_module
import switchyard.core.flows as flows_module
import switchyard.extensions.manager as manager_module
from switchyard.config import get_config, reset_config
from switchyard.core.database import Database
from switchyard.core.emitter import Emitter
from switchyard.core.flows import FlowManager
from switchyard.extensions.constants import pluralize
from switchyard.extensions.manager import ExtensionManager

ENV_VARS = [
    "EXTENSIONS_PATH",
    "EXTENSIONS_AUTO_RELOAD",
    "SERVE_APP",
    "SWITCHYARD_MANIFEST",
    "SWITCHYARD_APP_ASSETS",
    "SWITCHYARD_ESBUILD",
    "SWITCHYARD_ENV",
    "PUBLIC_URL",
    "DB_FILENAME",
    "SWITCHYARD_WEB_HOST",
    "SWITCHYARD_WEB_PORT",
    "SWITCHYARD_DEBUG",
    "SWITCHYARD_LOG_LEVEL",
    "SWITCHYARD_LOG_FORMAT",
    "SWITCHYARD_LOG_FILE",
    "SWITCHYARD_LOG_CONSOLE",
    "SWITCHYARD_LOGS_DIR",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Start every test from a clean environment and fresh singletons."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    reset_config()
    monkeypatch.setattr(emitter_module, "_emitter", None)
    monkeypatch.setattr(flows_module, "_flow_manager", None)
    monkeypatch.setattr(database_module, "_database", None)
    monkeypatch.setattr(manager_module, "_manager", None)
    yield
    reset_config()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def temp_db(temp_dir: Path) -> Path:
    """Create a path for a temporary database."""
    return temp_dir / "test.db"


@pytest.fixture
def extensions_root(temp_dir: Path) -> Path:
    return temp_dir / "extensions"


@pytest.fixture
def config(monkeypatch, temp_dir: Path, extensions_root: Path, temp_db: Path):
    """Configuration pointing every path into the temporary directory."""
    monkeypatch.setenv("EXTENSIONS_PATH", str(extensions_root))
    monkeypatch.setenv("SWITCHYARD_MANIFEST", str(temp_dir / "pyproject.toml"))
    monkeypatch.setenv("SWITCHYARD_APP_ASSETS", str(temp_dir / "assets"))
    monkeypatch.setenv("DB_FILENAME", str(temp_db))
    monkeypatch.setenv("SERVE_APP", "false")
    reset_config()
    return get_config()


@pytest.fixture
def write_extension(extensions_root: Path) -> Callable[..., Path]:
    """Write a local extension; returns its directory."""

    def write(extension_type: str, name: str, source: str = "", filename: str = "index.py") -> Path:
        directory = extensions_root / pluralize(extension_type) / name
        directory.mkdir(parents=True, exist_ok=True)
        (directory / filename).write_text(textwrap.dedent(source), encoding="utf-8")
        return directory

    return write


@pytest.fixture
def fake_bundler():
    """Bundler double returning one fixed bundle per type."""
    bundler = MagicMock()
    bundler.generate = AsyncMock(return_value={"interface": "export default [];"})
    return bundler


@pytest.fixture
def make_manager(config, temp_db: Path, fake_bundler) -> Callable[..., ExtensionManager]:
    """Build managers with isolated collaborators."""
    def make(**kwargs) -> ExtensionManager:
        kwargs.setdefault("emitter", Emitter())
        kwargs.setdefault("flow_manager", FlowManager())
        kwargs.setdefault("database", Database(temp_db))
        kwargs.setdefault("bundler", fake_bundler)
        return ExtensionManager(config_module.get_config(), **kwargs)

    return make


HOOK_COUNTER = """
def register(api, context):
    def bump(payload, meta, ctx):
        return {**payload, "hooked": payload.get("hooked", 0) + 1}

    api.filter("items.create", bump)
"""


@pytest.fixture
def hook_source() -> str:
    """Hook adding one to ``hooked`` on every items.create filter run."""
    return HOOK_COUNTER
