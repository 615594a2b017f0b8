"""Tests for configuration, errors and logging."""

import json
import logging
from pathlib import Path

from switchyard.config import Config, get_config, reset_config
from switchyard.core.errors import (
    DiscoveryError,
    ForbiddenError,
    InvalidScheduleError,
    RegistrationError,
    RouteNotFoundError,
    SwitchyardError,
    format_exception_chain,
)
from switchyard.core.logging import JSONFormatter, get_logger


class TestConfig:

    def test_defaults(self):
        config = Config()

        assert config.env == "production"
        assert config.public_url == "/"
        assert config.extensions.path == Path("./extensions")
        assert config.extensions.auto_reload is False
        assert config.extensions.serve_app is True
        assert config.web.port == 8055
        assert config.is_valid()

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("EXTENSIONS_PATH", "/srv/extensions")
        monkeypatch.setenv("EXTENSIONS_AUTO_RELOAD", "true")
        monkeypatch.setenv("SERVE_APP", "0")
        monkeypatch.setenv("SWITCHYARD_ENV", "Development")
        monkeypatch.setenv("SWITCHYARD_LOG_LEVEL", "debug")

        config = Config()

        assert config.extensions.path == Path("/srv/extensions")
        assert config.extensions.auto_reload is True
        assert config.extensions.serve_app is False
        assert config.is_development
        assert config.log.level == "DEBUG"

    def test_validation(self, monkeypatch):
        monkeypatch.setenv("SWITCHYARD_LOG_FORMAT", "xml")
        monkeypatch.setenv("SWITCHYARD_WEB_PORT", "70000")

        issues = Config().validate()

        assert len(issues) == 2
        assert any("SWITCHYARD_LOG_FORMAT" in issue for issue in issues)

    def test_extensions_path_must_be_a_directory(self, monkeypatch, temp_dir):
        not_a_dir = temp_dir / "file"
        not_a_dir.write_text("")
        monkeypatch.setenv("EXTENSIONS_PATH", str(not_a_dir))

        assert not Config().is_valid()

    def test_global_instance(self):
        assert get_config() is get_config()

        first = get_config()
        reset_config()

        assert get_config() is not first


class TestErrors:

    def test_user_friendly_format(self):
        error = SwitchyardError("Something broke", details="disk full", suggestion="Free space")

        assert str(error) == "Something broke\n   Details: disk full\n   Try: Free space"

    def test_discovery_error_source(self):
        error = DiscoveryError("Couldn't read", source="/srv/pyproject.toml")

        assert error.details == "Source: /srv/pyproject.toml"

    def test_registration_error_details(self):
        error = RegistrationError("Bad export", extension_name="counter", path="/x/index.py")

        assert error.details == "Extension: counter, Path: /x/index.py"

    def test_invalid_schedule_has_suggestion(self):
        error = InvalidScheduleError("every minute")

        assert "every minute" in error.message
        assert error.suggestion

    def test_host_error_payload(self):
        assert ForbiddenError().to_payload() == {
            "errors": [
                {
                    "message": "You don't have permission to access this.",
                    "extensions": {"code": "FORBIDDEN"},
                }
            ]
        }
        assert RouteNotFoundError("/nope").status_code == 404

    def test_exception_chain(self):
        try:
            try:
                raise OSError("permission denied")
            except OSError as e:
                raise DiscoveryError("Couldn't read folder", cause=e) from e
        except DiscoveryError as error:
            chain = format_exception_chain(error)

        assert "Couldn't read folder" in chain
        assert "Caused by:" in chain
        assert "OSError: permission denied" in chain


class TestLogging:

    def test_json_formatter_fields(self):
        record = logging.LogRecord("switchyard.test", logging.WARNING, __file__, 1, "Failed", None, None)
        record.extension = "counter"
        record.extra_data = {"attempt": 2}

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["message"] == "Failed"
        assert data["extension"] == "counter"
        assert data["attempt"] == 2

    def test_known_fields_become_attributes(self, caplog):
        logger = get_logger("test")

        with caplog.at_level(logging.INFO, logger="switchyard.test"):
            logger.info("Loaded", extension="counter", error=ValueError("x"), attempt=1)

        record = caplog.records[-1]
        assert record.name == "switchyard.test"
        assert record.extension == "counter"
        assert record.error == "x"
        assert record.extra_data == {"attempt": 1}

    def test_registration_failed(self, caplog):
        logger = get_logger("test")

        with caplog.at_level(logging.WARNING, logger="switchyard.test"):
            logger.registration_failed("hook", "counter", RuntimeError("boom"))

        record = caplog.records[-1]
        assert record.getMessage() == 'Couldn\'t register hook "counter"'
        assert record.extension_type == "hook"
