"""Export the application's named routes for client-side URL generation."""

import re
from typing import TYPE_CHECKING, Any, TypedDict

from litestar.app import DEFAULT_OPENAPI_CONFIG
from litestar.cli._utils import remove_default_schema_routes  # pyright: ignore[reportPrivateImportUsage]
from litestar.routes import ASGIRoute, WebSocketRoute

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from litestar import Litestar
    from litestar.handlers import BaseRouteHandler

__all__ = ("Routes", "ZiggyRoute", "ZiggyRoutes", "generate_js_routes", "generate_ziggy_routes")

EXCLUDED_METHODS = {"HEAD", "OPTIONS", "TRACE"}

_PATH_PARAM_TYPE = re.compile(r"{(\w+):[^}]+}")


class Routes(TypedDict):
    routes: "dict[str, str]"


class ZiggyRoute(TypedDict):
    uri: str
    methods: "list[str]"
    domain: "str | None"


class ZiggyRoutes(TypedDict):
    domain: str
    port: "int | None"
    protocol: str
    url: str
    group: str
    routes: "dict[str, ZiggyRoute]"


def _iter_handlers(
    app: "Litestar",
    exclude: "tuple[str, ...] | None" = None,
    exclude_opt_key: "str | None" = None,
    schema: bool = False,
) -> "Iterator[tuple[str, BaseRouteHandler, set[str]]]":
    """Yield ``(path, handler, methods)`` for every exported route, sorted by path."""
    sorted_routes = sorted(app.routes, key=lambda r: r.path)
    if not schema:
        openapi_config = app.openapi_config or DEFAULT_OPENAPI_CONFIG
        sorted_routes = remove_default_schema_routes(sorted_routes, openapi_config)
    if exclude is not None:
        # patterns match anywhere in the path
        compiled = [re.compile(pattern) for pattern in exclude]
        sorted_routes = [r for r in sorted_routes if not any(p.search(r.path) for p in compiled)]
    for route in sorted_routes:
        if isinstance(route, (ASGIRoute, WebSocketRoute)):
            handlers: "list[tuple[BaseRouteHandler, set[str]]]" = [(route.route_handler, set(route.methods))]
        else:
            handlers = [(handler, set(handler.http_methods)) for handler in route.route_handlers]
        for handler, methods in handlers:
            if exclude_opt_key is not None and handler.opt.get(exclude_opt_key, False):
                continue
            yield route.path, handler, methods


def _route_name(handler: "BaseRouteHandler") -> "str | None":
    name = handler.name or handler.handler_name
    # anonymous handlers have no name worth exporting
    if not name or name.startswith("<"):
        return None
    return name


def generate_js_routes(
    app: "Litestar",
    exclude: "tuple[str, ...] | None" = None,
    schema: bool = False,
    exclude_opt_key: "str | None" = None,
) -> Routes:
    """Map every named route to its path.

    Args:
        app: The application.
        exclude: Path patterns to leave out.
        schema: Include the OpenAPI schema routes.
        exclude_opt_key: Route ``opt`` key marking handlers to leave out.

    Returns:
        The route names and paths.
    """
    route_list: "dict[str, str]" = {}
    for path, handler, methods in _iter_handlers(app, exclude, exclude_opt_key, schema):
        route_name = _route_name(handler)
        if route_name is None or not methods.difference(EXCLUDED_METHODS):
            continue
        route_list[route_name] = path
    return {"routes": route_list}


def _ziggy_uri(path: str) -> str:
    uri = _PATH_PARAM_TYPE.sub(r"{\1}", path).lstrip("/")
    return uri or "/"


def generate_ziggy_routes(
    app: "Litestar",
    page: "Mapping[str, Any] | None" = None,
    default_host: str = "localhost",
    exclude_opt_key: "str | None" = None,
) -> ZiggyRoutes:
    """Build the ``Ziggy`` routes object used by the ``ziggy-js`` client.

    Args:
        app: The application.
        page: A page object dict.  Its ``scheme`` and ``host`` select the base URL.
        default_host: Host used when the page carries none.
        exclude_opt_key: Route ``opt`` key marking handlers to leave out.

    Returns:
        The Ziggy configuration.
    """
    page = page or {}
    protocol = str(page.get("scheme") or "http")
    domain, _, raw_port = str(page.get("host") or default_host).partition(":")
    url = f"{protocol}://{domain}"
    port = int(raw_port) if raw_port.isdigit() and int(raw_port) > 0 else None
    if port is not None:
        url = f"{url}:{port}"

    routes: "dict[str, ZiggyRoute]" = {}
    for path, handler, methods in _iter_handlers(app, exclude_opt_key=exclude_opt_key):
        route_name = _route_name(handler)
        if route_name is None or not methods.difference(EXCLUDED_METHODS):
            continue
        if route_name in routes:
            existing = routes[route_name]
            existing["methods"] = sorted({*existing["methods"], *methods})
        else:
            routes[route_name] = {"uri": _ziggy_uri(path), "methods": sorted(methods), "domain": None}

    return {"domain": domain, "port": port, "protocol": protocol, "url": url, "group": "", "routes": routes}
