"""Switchyard CLI - Command-line interface for the extension runtime.

Usage:
    switchyard serve              - Run the HTTP server
    switchyard list               - List discovered extensions
    switchyard bundle TYPE        - Print the app bundle of one extension type
"""

import asyncio
import sys

import click

from switchyard import __version__
from switchyard.config import get_config


@click.group()
@click.version_option(version=__version__, prog_name="Switchyard")
def cli():
    """Switchyard - extension runtime for the Switchyard server.

    Discovers extensions, wires them into the host and keeps them
    reloaded while you work on them.
    """
    pass


@cli.command()
@click.option("--host", default=None, help="Interface to bind (default from config)")
@click.option("--port", type=int, default=None, help="Port to listen on (default from config)")
@click.option("--reload", "auto_reload", is_flag=True, help="Reload extensions when their files change")
def serve(host: str, port: int, auto_reload: bool):
    """Run the HTTP server."""
    import uvicorn

    config = get_config()
    if auto_reload:
        config.extensions.auto_reload = True

    issues = config.validate()
    if issues:
        for issue in issues:
            click.echo(f"Config error: {issue}", err=True)
        sys.exit(1)

    uvicorn.run(
        "switchyard.web.server:create_app",
        factory=True,
        host=host or config.web.host,
        port=port or config.web.port,
        log_level=config.log.level.lower(),
    )


@cli.command(name="list")
@click.option("--type", "extension_type", default=None, help="Only show one extension type")
def list_extensions(extension_type: str):
    """List discovered extensions."""
    from switchyard.core.errors import DiscoveryError, format_exception_chain
    from switchyard.extensions.discovery import get_extensions

    cfg = get_config().extensions
    try:
        extensions = get_extensions(cfg.path, cfg.host_manifest, cfg.serve_app)
    except DiscoveryError as e:
        click.echo(format_exception_chain(e), err=True)
        sys.exit(1)

    if extension_type:
        extensions = [ext for ext in extensions if ext.type == extension_type]

    if not extensions:
        click.echo("No extensions found.")
        return

    for ext in extensions:
        origin = "local" if ext.local else "package"
        click.echo(f"{ext.type:<10} {ext.name:<40} {origin}")


@cli.command()
@click.argument("extension_type")
def bundle(extension_type: str):
    """Print the compiled app bundle of EXTENSION_TYPE."""
    source = asyncio.run(_build_bundle(extension_type))

    if source is None:
        click.echo(f'No bundle could be built for "{extension_type}".', err=True)
        sys.exit(1)

    click.echo(source)


async def _build_bundle(extension_type: str):
    from switchyard.extensions.manager import ExtensionManager

    manager = ExtensionManager()
    await manager.initialize({"watch": False, "schedule": False})
    try:
        return manager.get_app_extensions(extension_type)
    finally:
        await manager.shutdown()


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
