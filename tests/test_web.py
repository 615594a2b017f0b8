"""Tests for the web server."""

import httpx
import pytest
import pytest_asyncio

from switchyard.web.server import create_app

ENDPOINT = """
def default(router, context):
    @router.get("/")
    async def index():
        return {"status": "ok"}

    @router.get("/secret")
    async def secret():
        raise context.exceptions.ForbiddenError()
"""


@pytest_asyncio.fixture
async def served(monkeypatch, make_manager, write_extension, hook_source):
    """Manager with bundles enabled, wrapped in an app and an HTTP client."""
    from switchyard.config import get_config

    monkeypatch.setattr(get_config().extensions, "serve_app", True)
    write_extension("hook", "counter", hook_source)
    write_extension("endpoint", "status", ENDPOINT)
    manager = make_manager()
    await manager.initialize({"watch": False})

    app = create_app(manager)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield manager, client

    await manager.shutdown()


class TestExtensionsRoutes:

    @pytest.mark.asyncio
    async def test_list_by_type(self, served):
        _, client = served

        response = await client.get("/extensions/hook")
        assert response.status_code == 200
        assert response.json() == {"data": ["counter"]}

        response = await client.get("/extensions/endpoints")
        assert response.json() == {"data": ["status"]}

        response = await client.get("/extensions/interface")
        assert response.json() == {"data": []}

    @pytest.mark.asyncio
    async def test_unknown_type_is_404(self, served):
        _, client = served

        response = await client.get("/extensions/widget")

        assert response.status_code == 404
        assert response.json()["errors"][0]["extensions"]["code"] == "ROUTE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_bundle_is_served(self, served):
        _, client = served

        response = await client.get("/extensions/interface/index.js")

        assert response.status_code == 200
        assert response.text == "export default [];"
        assert response.headers["content-type"] == "application/javascript; charset=UTF-8"
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_missing_bundle_is_503(self, served):
        _, client = served

        response = await client.get("/extensions/panel/index.js")

        assert response.status_code == 503
        assert response.json()["errors"][0]["extensions"]["code"] == "SERVICE_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_api_types_have_no_bundle(self, served):
        _, client = served

        response = await client.get("/extensions/hook/index.js")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bundles_disappear_after_unload(self, served):
        manager, client = served

        await manager.unload()
        response = await client.get("/extensions/interface/index.js")

        assert response.status_code == 503


class TestEndpointRoutes:

    @pytest.mark.asyncio
    async def test_endpoint_is_reachable(self, served):
        _, client = served

        response = await client.get("/status/")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_host_errors_from_endpoints(self, served):
        _, client = served

        response = await client.get("/status/secret")

        assert response.status_code == 403
        assert response.json()["errors"][0]["extensions"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_endpoint_removed_after_unload(self, served):
        manager, client = served

        await manager.unload()
        response = await client.get("/status/")

        assert response.status_code == 404


def test_app_state_holds_manager(make_manager):
    manager = make_manager()

    app = create_app(manager)

    assert app.state.extensions is manager


INIT_HOOK = """
from pathlib import Path

LOG = Path(__file__).with_name("init.log")


def record(event):
    def handler(meta):
        with LOG.open("a") as log:
            log.write(event + "\\n")
    return handler


def register(api, context):
    for event in ("app.before", "routes.custom.before", "routes.custom.after", "app.after"):
        api.init(event, record(event))
"""


@pytest.mark.asyncio
async def test_init_hooks_run_at_startup(make_manager, write_extension):
    directory = write_extension("hook", "startup", INIT_HOOK)
    manager = make_manager()
    app = create_app(manager)

    async with app.router.lifespan_context(app):
        assert manager.is_loaded
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            response = await client.get("/extensions/hook")
            assert response.json() == {"data": ["startup"]}

    assert (directory / "init.log").read_text().splitlines() == [
        "app.before",
        "routes.custom.before",
        "routes.custom.after",
        "app.after",
    ]
    assert not manager.is_loaded
