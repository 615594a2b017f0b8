"""Tests for the module loader."""

import sys
from types import SimpleNamespace

import pytest

from switchyard.core.errors import RegistrationError
from switchyard.extensions.loader import (
    EndpointConfig,
    HookConfig,
    ModuleLoader,
    OperationConfig,
    StorageConfig,
    get_module_default,
    normalize_config,
)


def handler(*args):
    return None


class TestGetModuleDefault:

    def test_wrapped_default(self):
        module = SimpleNamespace(default="config")
        assert get_module_default(module) == "config"

    def test_bare_export(self):
        module = SimpleNamespace(register=handler)
        assert get_module_default(module) is module


class TestNormalizeConfig:

    def test_hook_from_function(self):
        assert normalize_config("hook", handler, "h") == HookConfig(register=handler)

    def test_hook_from_module_attribute(self):
        module = SimpleNamespace(register=handler)
        assert normalize_config("hook", module, "h").register is handler

    def test_hook_not_callable(self):
        with pytest.raises(RegistrationError):
            normalize_config("hook", 42, "h")

    def test_endpoint_bare_handler(self):
        config = normalize_config("endpoint", handler, "e")
        assert config == EndpointConfig(handler=handler, id=None)

    def test_endpoint_with_id(self):
        config = normalize_config("endpoint", {"id": "custom", "handler": handler}, "e")
        assert config == EndpointConfig(handler=handler, id="custom")

    def test_endpoint_without_handler(self):
        with pytest.raises(RegistrationError):
            normalize_config("endpoint", {"id": "custom"}, "e")

    def test_operation(self):
        config = normalize_config("operation", {"id": "notify", "handler": handler}, "o")
        assert config == OperationConfig(id="notify", handler=handler)

    def test_operation_needs_id(self):
        with pytest.raises(RegistrationError):
            normalize_config("operation", {"handler": handler}, "o")

    def test_storage_kept_verbatim(self):
        driver = {"driver": "s3", "bucket": "files"}
        assert normalize_config("storage", driver, "s").value is driver

    def test_unknown_kind(self):
        with pytest.raises(RegistrationError):
            normalize_config("widget", handler, "x")


class TestModuleLoader:

    def test_load_wrapped_default(self, temp_dir):
        path = temp_dir / "hook.py"
        path.write_text("def register(api, context):\n    pass\n\ndefault = {'register': register}\n")

        config = ModuleLoader().load(path, "hook")

        assert isinstance(config, HookConfig)
        assert config.register.__name__ == "register"

    def test_load_storage_module(self, temp_dir):
        path = temp_dir / "storage.py"
        path.write_text("default = {'driver': 'local', 'root': '/tmp'}\n")

        config = ModuleLoader().load(path, "storage")

        assert config == StorageConfig(value={"driver": "local", "root": "/tmp"})

    def test_missing_file(self, temp_dir):
        with pytest.raises(RegistrationError):
            ModuleLoader().load(temp_dir / "missing.py", "hook")

    def test_import_error_propagates(self, temp_dir):
        path = temp_dir / "broken.py"
        path.write_text("raise RuntimeError('broken on import')\n")
        loader = ModuleLoader()

        with pytest.raises(RuntimeError):
            loader.load(path, "hook")
        assert loader.context.module_names == []

    def test_cycles_reimport_modules(self, temp_dir):
        path = temp_dir / "storage.py"
        path.write_text("default = {'version': 1}\n")
        loader = ModuleLoader()

        loader.begin_cycle()
        first = loader.load(path, "storage")
        first_names = loader.context.module_names
        assert all(name in sys.modules for name in first_names)

        loader.end_cycle()
        assert not any(name in sys.modules for name in first_names)

        path.write_text("default = {'version': 22}\n")
        loader.begin_cycle()
        second = loader.load(path, "storage")

        assert first.value == {"version": 1}
        assert second.value == {"version": 22}
        assert loader.context.module_names != first_names
        loader.end_cycle()

    def test_dataclass_in_extension(self, temp_dir):
        path = temp_dir / "storage.py"
        path.write_text(
            "from dataclasses import dataclass\n\n"
            "@dataclass\n"
            "class Driver:\n"
            "    root: str\n\n"
            "default = Driver(root='/data')\n"
        )

        config = ModuleLoader().load(path, "storage")

        assert config.value.root == "/data"
