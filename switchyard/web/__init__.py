"""Web package - HTTP surface of the extension runtime."""

from .server import create_app

__all__ = ["create_app"]
