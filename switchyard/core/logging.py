"""Structured logging for Switchyard.

Provides JSON-formatted logs with file and console output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional
from logging.handlers import RotatingFileHandler

# Known fields become record attributes, everything else lands in extra_data
_RECORD_FIELDS = ("component", "extension", "extension_type", "event", "path", "duration_ms", "error")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _RECORD_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add any other extra fields
        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for human-readable output."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")

        timestamp = datetime.now().strftime("%H:%M:%S")

        prefix = f"{color}[{timestamp}] {record.levelname:8}{self.RESET}"

        if hasattr(record, "component"):
            prefix += f" [{record.component}]"

        message = record.getMessage()

        # Add extra context on same line if brief
        extras = []
        if hasattr(record, "extension"):
            extras.append(f"ext={record.extension}")
        if hasattr(record, "extension_type"):
            extras.append(f"type={record.extension_type}")
        if hasattr(record, "duration_ms"):
            extras.append(f"time={record.duration_ms:.0f}ms")

        if extras:
            message += f" ({', '.join(extras)})"

        if hasattr(record, "error"):
            message += f"\n    {record.error}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return f"{prefix} {message}"


class SwitchyardLogger:
    """Logger wrapper with convenience methods for extension runtime logging."""

    def __init__(self, name: str, logger: logging.Logger):
        self._name = name
        self._logger = logger

    @property
    def name(self) -> str:
        return self._name

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, **kwargs)

    def _log(self, level: int, message: str, **kwargs):
        """Log with extra context fields."""
        exc_info = kwargs.pop("exc_info", None)
        extra = {}

        for key in _RECORD_FIELDS:
            if key in kwargs:
                value = kwargs.pop(key)
                extra[key] = str(value) if isinstance(value, (BaseException, Path)) else value

        if kwargs:
            extra["extra_data"] = kwargs

        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    # Convenience methods for common extension runtime events

    def extensions_loaded(self, names: Iterable[str]):
        names = list(names)
        if names:
            self.info(f"Loaded extensions: {', '.join(names)}", component="manager")

    def extensions_changed(self, added: Iterable[str], removed: Iterable[str]):
        added, removed = list(added), list(removed)
        if added:
            self.info(f"Added extensions: {', '.join(added)}", component="manager")
        if removed:
            self.info(f"Removed extensions: {', '.join(removed)}", component="manager")

    def registration_failed(self, kind: str, name: str, error: Exception):
        self.warning(
            f'Couldn\'t register {kind} "{name}"',
            component="registrar",
            extension=name,
            extension_type=kind,
            error=error,
        )


# Global logger registry
_loggers: dict[str, SwitchyardLogger] = {}
_initialized = False


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_dir: Optional[Path] = None,
    file_enabled: bool = False,
    console_enabled: bool = True
) -> None:
    """Initialize the logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        log_dir: Directory for log files
        file_enabled: Write logs to file
        console_enabled: Write logs to console
    """
    global _initialized

    if _initialized:
        return

    root = logging.getLogger("switchyard")
    root.setLevel(getattr(logging, level.upper()))
    root.handlers.clear()

    if console_enabled:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.DEBUG)

        if format_type == "json":
            console.setFormatter(JSONFormatter())
        else:
            console.setFormatter(ColoredFormatter())

        root.addHandler(console)

    if file_enabled and log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "switchyard.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    _initialized = True


def get_logger(name: str = "switchyard") -> SwitchyardLogger:
    """Get a Switchyard logger instance."""
    if name not in _loggers:
        qualified = name if name.startswith("switchyard") else f"switchyard.{name}"
        _loggers[name] = SwitchyardLogger(name, logging.getLogger(qualified))
    return _loggers[name]
