import json
from pathlib import Path
from typing import Any, Dict

import pytest
from click import Group
from litestar import Request, get
from litestar.testing import create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import InertiaConfig, InertiaPlugin, InertiaRequest, InertiaResponse, get_shared, share
from litestar_inertia.template_engine import InertiaTemplateEngine

pytestmark = pytest.mark.anyio


async def test_plugin_configures_app(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler(request: Request[Any, Any, Any]) -> Dict[str, Any]:
        assert isinstance(request, InertiaRequest)
        assert inertia_plugin.portal is not None
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        assert client.app.request_class is InertiaRequest
        assert client.app.response_class is InertiaResponse
        assert isinstance(client.app.template_engine, InertiaTemplateEngine)
        assert client.get("/").status_code == 200

    assert inertia_plugin.portal is None


def test_version_from_manifest(tmp_path: Path) -> None:
    (tmp_path / "manifest.json").write_text(json.dumps({"app.js": "app-1a2b.js"}))
    config = InertiaConfig(template_dir=Path(__file__).parent / "templates", public_dir=tmp_path)
    plugin = InertiaPlugin(config=config)

    with create_test_client(route_handlers=[], plugins=[plugin]):
        assert len(plugin.versions.get_version()) == 32
        assert plugin.loader.is_loaded


def test_missing_manifest_serves_without_version(tmp_path: Path) -> None:
    config = InertiaConfig(template_dir=Path(__file__).parent / "templates", public_dir=tmp_path)
    plugin = InertiaPlugin(config=config)

    with create_test_client(route_handlers=[], plugins=[plugin]):
        assert plugin.versions.get_version() == ""


def test_cli_group_is_registered(inertia_plugin: InertiaPlugin) -> None:
    cli = Group()
    inertia_plugin.on_cli_init(cli)

    assert "inertia" in cli.commands


async def test_get_shared_reads_without_consuming(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler(request: Request[Any, Any, Any]) -> Dict[str, Any]:
        share(request, "flash", "ok")
        assert get_shared(request, "flash") == "ok"
        assert get_shared(request, "missing", "fallback") == "fallback"
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        page = client.get("/", headers={"X-Inertia": "true"}).json()

        assert page["props"] == {"flash": "ok"}


async def test_sync_handlers_can_share(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home", sync_to_thread=True)
    def handler(request: Request[Any, Any, Any]) -> Dict[str, Any]:
        share(request, "from_thread", True)
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        page = client.get("/", headers={"X-Inertia": "true"}).json()

        assert page["props"] == {"from_thread": True}
