"""FastAPI app serving extension bundles and extension endpoints.

Routes:
    GET /extensions/{type}            - names of loaded extensions of a type
    GET /extensions/{type}/index.js   - compiled app bundle of a type
    /<endpoint id>/*                  - routes contributed by endpoint extensions
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from switchyard import __version__
from switchyard.config import get_config
from switchyard.core.errors import HostError, RouteNotFoundError, ServiceUnavailableError
from switchyard.core.logging import get_logger, setup_logging
from switchyard.extensions.constants import APP_EXTENSION_TYPES, EXTENSION_PACKAGE_TYPES
from switchyard.extensions.manager import ExtensionManager, get_extension_manager

logger = get_logger("web")

# Host startup checkpoints handed to `init` hooks, in order
INIT_EVENTS = ("app.before", "routes.custom.before", "routes.custom.after", "app.after")


def _singular(segment: str) -> str:
    # Route segments may be plural, e.g. /extensions/interfaces
    return segment[:-1] if segment.endswith("s") else segment


def create_app(manager: Optional[ExtensionManager] = None) -> FastAPI:
    """Build the web app around an extension manager."""
    config = get_config()
    setup_logging(
        level=config.log.level,
        format_type=config.log.format,
        log_dir=config.log.logs_dir,
        file_enabled=config.log.file_enabled,
        console_enabled=config.log.console_enabled,
    )
    manager = manager or get_extension_manager()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await manager.initialize()
        for event in INIT_EVENTS:
            await manager.emitter.emit_init(event, {"app": app})
        try:
            yield
        finally:
            await manager.shutdown()

    app = FastAPI(title="Switchyard", version=__version__, lifespan=lifespan)
    app.state.extensions = manager

    @app.exception_handler(HostError)
    async def host_error_handler(request: Request, exc: HostError):
        if exc.status_code >= 500:
            logger.error(exc.message, path=request.url.path, error=exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.get("/extensions/{extension_type}")
    async def list_extensions(extension_type: str, request: Request):
        singular = _singular(extension_type)
        if singular not in EXTENSION_PACKAGE_TYPES:
            raise RouteNotFoundError(request.url.path)
        return {"data": manager.get_extensions_list(singular)}

    @app.get("/extensions/{extension_type}/index.js")
    async def get_bundle(extension_type: str, request: Request):
        singular = _singular(extension_type)
        if singular not in APP_EXTENSION_TYPES:
            raise RouteNotFoundError(request.url.path)

        bundle = manager.get_app_extensions(singular)
        if bundle is None:
            raise ServiceUnavailableError(
                f'Bundle for "{extension_type}" isn\'t available',
                service="extensions",
            )

        return Response(
            content=bundle,
            media_type="application/javascript; charset=UTF-8",
            headers={"Cache-Control": "no-store"},
        )

    # Catch-all for extension endpoints, registered last
    app.mount("/", manager.get_endpoint_router())

    return app
