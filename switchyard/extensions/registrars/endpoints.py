"""Endpoint registrar - mounts one isolated router per endpoint extension."""

import inspect
from pathlib import Path

from fastapi import APIRouter
from starlette.routing import Mount

from switchyard.core.errors import RegistrationError
from switchyard.extensions.loader import EndpointConfig, ModuleLoader
from switchyard.extensions.registrars.base import ExtensionContext, Registrar
from switchyard.models.extension import Extension
from switchyard.models.registry import EndpointRecord


class EndpointRegistrar(Registrar):
    """Mounts ``/<id or name>`` on the shared endpoint router.

    The shared router's routes are cleared wholesale on unregister and
    rebuilt on the next cycle.
    """

    kind = "endpoint"

    def __init__(self, loader: ModuleLoader, context: ExtensionContext, router: APIRouter):
        super().__init__(loader, context)
        self.router = router
        self._records: list[EndpointRecord] = []

    @property
    def records(self) -> list[EndpointRecord]:
        return self._records

    @property
    def mounts(self) -> list[str]:
        return [route.path for route in self.router.routes if isinstance(route, Mount)]

    async def wire(self, extension: Extension, path: Path, config: EndpointConfig) -> None:
        segment = str(config.id or extension.name).strip("/")
        if not segment or "/" in segment:
            raise RegistrationError(f'Invalid endpoint id "{segment}"', extension_name=extension.name)
        if f"/{segment}" in self.mounts:
            raise RegistrationError(f'Endpoint "/{segment}" is already mounted', extension_name=extension.name)

        scoped = APIRouter()
        result = config.handler(scoped, self.context)
        if inspect.isawaitable(result):
            await result

        mount = Mount(f"/{segment}", app=scoped)
        self.router.routes.append(mount)
        self._records.append(EndpointRecord(path=path, mount=mount.path))

    def unregister(self) -> None:
        self.router.routes.clear()
        self._records = []
