from typing import Any, Dict

import pytest
from litestar import Request, get, post, route
from litestar.enums import HttpMethod
from litestar.exceptions import InternalServerException
from litestar.logging.config import LoggingConfig
from litestar.response import Redirect
from litestar.status_codes import HTTP_302_FOUND
from litestar.testing import create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import InertiaHeaders, InertiaPlugin, get_shared, share
from litestar_inertia._utils import REQUEST_ID_STATE_KEY

pytestmark = pytest.mark.anyio


def _redirect_handler() -> Any:
    @route("/redirect", http_method=[HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH, HttpMethod.DELETE])
    async def redirect_handler() -> Redirect:
        return Redirect(path="/", status_code=HTTP_302_FOUND)

    return redirect_handler


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
@pytest.mark.parametrize("header_value", ["true", "false"])
async def test_redirect_rewritten_to_see_other(inertia_plugin: InertiaPlugin, method: str, header_value: str) -> None:
    with create_test_client(route_handlers=[_redirect_handler()], plugins=[inertia_plugin]) as client:
        response = client.request(
            method,
            "/redirect",
            headers={InertiaHeaders.ENABLED.value: header_value},
            follow_redirects=False,
        )

        assert response.status_code == 303


@pytest.mark.parametrize(
    ("method", "headers"),
    [
        ("POST", {InertiaHeaders.ENABLED.value: "true"}),
        ("PATCH", {}),
        ("PUT", {}),
    ],
)
async def test_redirect_left_alone(inertia_plugin: InertiaPlugin, method: str, headers: "dict[str, str]") -> None:
    with create_test_client(route_handlers=[_redirect_handler()], plugins=[inertia_plugin]) as client:
        response = client.request(method, "/redirect", headers=headers, follow_redirects=False)

        assert response.status_code == HTTP_302_FOUND


async def test_other_statuses_unchanged(inertia_plugin: InertiaPlugin) -> None:
    @route("/ok", http_method=[HttpMethod.PATCH], status_code=200, component="Home")
    async def handler() -> Dict[str, Any]:
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.patch("/ok", headers={InertiaHeaders.ENABLED.value: "true"})

        assert response.status_code == 200


async def test_version_mismatch_forces_full_reload(inertia_plugin: InertiaPlugin) -> None:
    calls: "list[str]" = []

    @get("/", component="Home")
    async def handler() -> Dict[str, Any]:
        calls.append("called")
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/?page=2",
            headers={InertiaHeaders.ENABLED.value: "true", InertiaHeaders.VERSION.value: "stale"},
        )

        assert response.status_code == 409
        assert response.headers[InertiaHeaders.LOCATION.value] == "http://testserver.local/?page=2"
        assert calls == []

        response = client.get(
            "/", headers={InertiaHeaders.ENABLED.value: "true", InertiaHeaders.VERSION.value: "1.0"}
        )
        assert response.status_code == 200
        assert calls == ["called"]


async def test_version_mismatch_ignored_for_non_get(inertia_plugin: InertiaPlugin) -> None:
    @post("/", component="Home")
    async def handler() -> Dict[str, Any]:
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.post(
            "/", headers={InertiaHeaders.ENABLED.value: "true", InertiaHeaders.VERSION.value: "stale"}
        )

        assert response.status_code == 201


async def test_version_resolver_is_consulted(inertia_plugin: InertiaPlugin) -> None:
    inertia_plugin.versions.set_version(lambda: "resolved")

    @get("/", component="Home")
    async def handler() -> Dict[str, Any]:
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/", headers={InertiaHeaders.ENABLED.value: "true", InertiaHeaders.VERSION.value: "resolved"}
        )

        assert response.status_code == 200
        assert response.json()["version"] == "resolved"


async def test_request_id_header(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def handler() -> Dict[str, Any]:
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        generated = client.get("/").headers["x-request-id"]
        echoed = client.get("/", headers={"X-Request-ID": "client-id"}).headers["x-request-id"]

        assert len(generated) == 32
        assert echoed == "client-id"


async def test_request_ids_are_unique_even_when_client_replays_one(inertia_plugin: InertiaPlugin) -> None:
    seen: "list[str]" = []

    @get("/", component="Home")
    async def handler(request: Request[Any, Any, Any]) -> Dict[str, Any]:
        seen.append(request.scope["state"][REQUEST_ID_STATE_KEY])  # type: ignore[typeddict-item]
        return {}

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        client.get("/", headers={"X-Request-ID": "same"})
        client.get("/", headers={"X-Request-ID": "same"})

        assert len(set(seen)) == 2
        assert "same" not in seen


async def test_store_entry_reclaimed_when_not_rendered(inertia_plugin: InertiaPlugin) -> None:
    @get("/api")
    async def api(request: Request[Any, Any, Any]) -> Dict[str, Any]:
        share(request, "flash", "ok")
        return {"flash": get_shared(request, "flash")}

    @get("/boom", component="Home")
    async def boom(request: Request[Any, Any, Any]) -> Dict[str, Any]:
        share(request, "flash", "ok")
        raise InternalServerException("boom")

    with create_test_client(
        route_handlers=[api, boom], plugins=[inertia_plugin], logging_config=LoggingConfig()
    ) as client:
        response = client.get("/api")
        assert response.json() == {"flash": "ok"}
        assert len(inertia_plugin.store) == 0

        response = client.get("/boom", headers={InertiaHeaders.ENABLED.value: "true"})
        assert response.status_code == 500
        assert len(inertia_plugin.store) == 0


async def test_excluded_handler_bypasses_middleware(inertia_plugin: InertiaPlugin) -> None:
    @get("/health", exclude_from_inertia=True)
    async def health() -> Dict[str, Any]:
        return {"status": "ok"}

    with create_test_client(route_handlers=[health], plugins=[inertia_plugin]) as client:
        response = client.get("/health")

        assert response.json() == {"status": "ok"}
        assert "x-request-id" not in response.headers
