"""Jinja integration for the Inertia root template.

The callables below are registered as template globals and receive the template context, from which they reach
the request and the :class:`InertiaPlugin <litestar_inertia.plugin.InertiaPlugin>`.  A root template typically
looks like::

    <!DOCTYPE html>
    <html>
      <head>{{ vite("resources/js/app.js") }}</head>
      <body>{{ inertia() }}</body>
    </html>
"""

from typing import TYPE_CHECKING, Any, cast

import markupsafe
from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.serialization import encode_json, get_serializer

from litestar_inertia._utils import get_request_id

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from pathlib import Path

    from jinja2 import Environment
    from litestar.connection import Request

    from litestar_inertia.plugin import InertiaPlugin

__all__ = (
    "InertiaTemplateEngine",
    "register_template_callables",
    "render_inertia",
    "render_json",
    "render_json_raw",
    "render_routes",
    "render_routes_ziggy",
    "render_shared",
    "render_vite",
)


def _get_request_from_context(context: "Mapping[str, Any]") -> "Request[Any, Any, Any]":
    """Get the request from the template context.

    Raises:
        ValueError: If 'request' is not found in the template context.
        TypeError: If 'request' is not a Litestar Request object.
    """
    from litestar.connection import Request

    request = context.get("request")
    if request is None:
        msg = "Request not found in template context. Ensure 'request' is passed to the template."
        raise ValueError(msg)
    if not isinstance(request, Request):  # pyright: ignore[reportUnknownVariableType]
        msg = f"Expected Request object, got {type(request)}"
        raise TypeError(msg)
    return request  # pyright: ignore[reportReturnType,reportUnknownVariableType]


def _get_inertia_plugin(context: "Mapping[str, Any]") -> "InertiaPlugin | None":
    request = _get_request_from_context(context)
    try:
        return cast("InertiaPlugin", request.app.plugins.get("InertiaPlugin"))
    except KeyError:
        return None


def _encode(context: "Mapping[str, Any]", value: Any) -> str:
    request = context.get("request")
    type_encoders = request.app.type_encoders if request is not None else None  # pyright: ignore[reportUnknownMemberType]
    return encode_json(value, serializer=get_serializer(type_encoders)).decode("utf-8")


def render_inertia(context: "Mapping[str, Any]", /, page: "Any" = None, element_id: str = "app") -> "markupsafe.Markup":
    """Render the element the client-side app mounts on, carrying the page object.

    Args:
        context: The template context.
        page: The page object.  Defaults to ``page`` from the context.
        element_id: The ``id`` of the rendered element.

    Returns:
        A ``<div>`` with the page object in its ``data-page`` attribute.
    """
    page = context.get("page") if page is None else page
    data = markupsafe.escape(_encode(context, page))
    return markupsafe.Markup(f"<div id='{markupsafe.escape(element_id)}' data-page='{data}'></div>")


def render_json(context: "Mapping[str, Any]", /, value: Any) -> "markupsafe.Markup":
    """Encode a value as JSON safe to embed inside a ``<script>`` element."""
    js = _encode(context, value).replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")
    return markupsafe.Markup(js)


def render_json_raw(context: "Mapping[str, Any]", /, value: Any) -> str:
    """Encode a value as JSON.  The result is escaped by the template like any string."""
    return _encode(context, value)


def render_vite(
    context: "Mapping[str, Any]", /, path: str, tags: bool = True, strict: bool = False
) -> "markupsafe.Markup":
    """Resolve a built asset from the manifest.

    Args:
        context: The template context.
        path: The asset source path.
        tags: Render ``<script>``/``<link>`` tags instead of the bare path.
        strict: Fail the render when the asset is not in the manifest.

    Raises:
        AssetNotFoundError: If ``strict`` and the asset is not in the manifest.

    Returns:
        The asset tags, or the served asset path.
    """
    inertia_plugin = _get_inertia_plugin(context)
    if inertia_plugin is None:
        return markupsafe.Markup(markupsafe.escape(path))
    if tags:
        return inertia_plugin.loader.get_asset_tags(path, strict=strict)
    return markupsafe.Markup(markupsafe.escape(inertia_plugin.loader.get_asset_path(path, strict=strict)))


def render_shared(context: "Mapping[str, Any]", /) -> "dict[str, Any]":
    """Return the props shared so far while handling the request, without consuming them.

    Lets plain templates, rendered outside of an Inertia page, read the same shared data.
    """
    inertia_plugin = _get_inertia_plugin(context)
    request_id = get_request_id(_get_request_from_context(context).scope)
    if inertia_plugin is None or request_id is None:
        return {}
    return inertia_plugin.store.get_all(request_id)


def render_routes(context: "Mapping[str, Any]", /) -> "markupsafe.Markup":
    """Render the application's named routes as a JSON object literal."""
    from litestar_inertia.routes import generate_js_routes

    request = _get_request_from_context(context)
    exclude_opt_key = None
    inertia_plugin = _get_inertia_plugin(context)
    if inertia_plugin is not None:
        exclude_opt_key = inertia_plugin.config.exclude_from_js_routes_key
    return render_json(context, generate_js_routes(request.app, exclude_opt_key=exclude_opt_key))


def render_routes_ziggy(context: "Mapping[str, Any]", /, page: "Any" = None) -> "markupsafe.Markup":
    """Render a ``<script>`` defining the ``Ziggy`` routes object for the current host."""
    from litestar_inertia.routes import generate_ziggy_routes

    request = _get_request_from_context(context)
    page = context.get("page") if page is None else page
    inertia_plugin = _get_inertia_plugin(context)
    exclude_opt_key = inertia_plugin.config.exclude_from_js_routes_key if inertia_plugin is not None else None
    ziggy = generate_ziggy_routes(
        request.app,
        page if isinstance(page, dict) else None,
        default_host=request.url.netloc,
        exclude_opt_key=exclude_opt_key,
    )
    return markupsafe.Markup(f"<script>const Ziggy = {render_json(context, ziggy)};</script>")


_TEMPLATE_CALLABLES: "dict[str, Callable[..., Any]]" = {
    "inertia": render_inertia,
    "json_encode": render_json,
    "json_encode_raw": render_json_raw,
    "vite": render_vite,
    "routes": render_routes,
    "routes_ziggy": render_routes_ziggy,
    "shared": render_shared,
}


def register_template_callables(engine: "JinjaTemplateEngine") -> None:
    """Register the Inertia template callables on a Jinja template engine."""
    for key, template_callable in _TEMPLATE_CALLABLES.items():
        engine.register_template_callable(key=key, template_callable=template_callable)


class InertiaTemplateEngine(JinjaTemplateEngine):
    """Jinja Template Engine with the Inertia template callables registered."""

    def __init__(
        self,
        directory: "Path | list[Path] | None" = None,
        engine_instance: "Environment | None" = None,
    ) -> None:
        """Jinja2 based TemplateEngine.

        Args:
            directory: Direct path or list of directory paths from which to serve templates.
            engine_instance: A jinja Environment instance.
        """
        super().__init__(directory=directory, engine_instance=engine_instance)
        register_template_callables(self)
