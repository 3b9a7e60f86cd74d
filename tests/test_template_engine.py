import json
from pathlib import Path
from typing import Any, Dict

import pytest
from litestar import Request, get
from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.exceptions import ImproperlyConfiguredException
from litestar.response import Template
from litestar.template import TemplateConfig
from litestar.testing import create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import InertiaConfig, InertiaPlugin, InertiaResponse, InertiaTemplateEngine, share
from litestar_inertia.template_engine import render_inertia, render_json, render_json_raw
from tests.conftest import template_dir

pytestmark = pytest.mark.anyio


def test_render_inertia_escapes_page_object() -> None:
    html = render_inertia({"page": {"component": "Home", "props": {"quote": "it's <b>"}}})

    assert html.startswith("<div id='app' data-page='")
    assert "&#39;" in html
    assert "<b>" not in html
    assert "&#34;component&#34;:&#34;Home&#34;" in html


def test_render_inertia_explicit_page_and_id() -> None:
    html = render_inertia({}, {"component": "Other"}, element_id="root")

    assert html.startswith("<div id='root' data-page='")
    assert "&#34;Other&#34;" in html


def test_json_helpers() -> None:
    assert render_json({}, {"html": "</script>&"}) == '{"html":"\\u003c/script\\u003e\\u0026"}'
    assert render_json_raw({}, {"a": [1, 2]}) == '{"a":[1,2]}'


def test_engine_registers_template_callables() -> None:
    engine = InertiaTemplateEngine(directory=template_dir)

    for name in ("inertia", "json_encode", "json_encode_raw", "vite", "routes", "routes_ziggy", "shared"):
        assert name in engine.engine.globals


async def test_vite_resolves_assets_from_manifest(inertia_config: InertiaConfig, tmp_path: Path) -> None:
    (tmp_path / "manifest.json").write_text(
        json.dumps({"resources/js/app.js": {"file": "assets/app-1a2b.js", "css": ["assets/app-3c4d.css"]}})
    )

    @get("/", component="Home")
    async def handler() -> Dict[str, Any]:
        return {}

    with create_test_client(route_handlers=[handler], plugins=[InertiaPlugin(config=inertia_config)]) as client:
        response = client.get("/")

        assert '<script type="module" src="/assets/app-1a2b.js"></script>' in response.text
        assert '<link rel="stylesheet" href="/assets/app-3c4d.css" />' in response.text


async def test_asset_and_json_helpers(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler() -> InertiaResponse[Any]:
        return InertiaResponse(component="Home", props={"a": 1}, root_view="helpers.html")

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        asset, props, _ = client.get("/").text.split("|", 2)

        assert asset == "/resources/js/app.js"
        assert props == "{&#34;a&#34;:1}"


async def test_routes_helpers(inertia_plugin: InertiaPlugin) -> None:
    @get("/users/{user_id:int}", name="users.show")
    async def show_user(user_id: int) -> Dict[str, Any]:
        return {}

    @get("/")
    async def index() -> InertiaResponse[Any]:
        return InertiaResponse(component="Home", root_view="routes.html")

    with create_test_client(route_handlers=[index, show_user], plugins=[inertia_plugin]) as client:
        text = client.get("/").text

        assert '"users.show":"/users/{user_id:int}"' in text
        assert "<script>const Ziggy = " in text
        assert '"users.show":{"uri":"users/{user_id}","methods":["GET"],"domain":null}' in text
        assert '"domain":"testserver.local"' in text


async def test_user_supplied_jinja_engine_gets_callables(inertia_config: InertiaConfig) -> None:
    inertia_config.template_dir = None

    @get("/", component="Home")
    async def handler() -> Dict[str, Any]:
        return {"a": 1}

    with create_test_client(
        route_handlers=[handler],
        plugins=[InertiaPlugin(config=inertia_config)],
        template_config=TemplateConfig(engine=JinjaTemplateEngine, directory=template_dir),
    ) as client:
        response = client.get("/")

        assert "data-page='" in response.text


def test_missing_template_dir_is_a_configuration_error(inertia_config: InertiaConfig, tmp_path: Path) -> None:
    inertia_config.template_dir = tmp_path / "does-not-exist"

    with pytest.raises(ImproperlyConfiguredException):
        create_test_client(route_handlers=[], plugins=[InertiaPlugin(config=inertia_config)])


def test_no_template_engine_is_a_configuration_error(inertia_config: InertiaConfig) -> None:
    inertia_config.template_dir = None

    with pytest.raises(ImproperlyConfiguredException):
        create_test_client(route_handlers=[], plugins=[InertiaPlugin(config=inertia_config)])


async def test_plain_templates_read_shared_props(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler(request: Request[Any, Any, Any]) -> Template:
        share(request, "auth", {"user": "alice"})
        return Template(template_name="shared.html")

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/")

        assert response.text == "alice|alice|1"
        assert len(inertia_plugin.store) == 0


async def test_strict_vite_fails_on_unknown_asset(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler() -> Template:
        return Template(template_name="strict.html")

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/")

        assert response.status_code == 500
