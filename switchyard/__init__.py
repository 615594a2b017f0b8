"""Switchyard: extension runtime for the Switchyard server."""

__version__ = "0.1.0"
