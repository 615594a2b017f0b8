"""Write a message to the server log."""

from switchyard.core.logging import get_logger

logger = get_logger("operations.log")

LEVELS = ("debug", "info", "warning", "error")


def handler(options: dict, context: dict) -> None:
    level = str(options.get("level", "info")).lower()
    if level not in LEVELS:
        level = "info"
    getattr(logger, level)(str(options.get("message", "")), component="flows")


default = {"id": "log", "handler": handler}
