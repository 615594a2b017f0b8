"""Switchyard: extension runtime for the Switchyard server

Discovers package and local extensions, wires hooks, endpoints, storages
and operations into the host, reloads them when their files change and
bundles browser-facing extensions for the app.

Usage:
    python main.py serve
    python main.py list --type hook
    python main.py bundle interface
"""

from switchyard.cli.cli import main


if __name__ == "__main__":
    main()
