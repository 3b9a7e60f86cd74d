import copy
import itertools
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar, cast
from urllib.parse import quote, urlparse

from litestar import Litestar, MediaType, Request, Response
from litestar.exceptions import ImproperlyConfiguredException
from litestar.response import Redirect
from litestar.response.base import ASGIResponse
from litestar.serialization import get_serializer
from litestar.status_codes import HTTP_200_OK, HTTP_303_SEE_OTHER, HTTP_307_TEMPORARY_REDIRECT, HTTP_409_CONFLICT
from litestar.utils.empty import value_or_default
from litestar.utils.helpers import get_enum_string_value
from litestar.utils.scope.state import ScopeState

from litestar_inertia._utils import get_headers, get_request_id
from litestar_inertia.helpers import LazyProp, filter_props, is_lazy_prop
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.request import InertiaDetails, InertiaRequest
from litestar_inertia.types import InertiaHeaderType, PageObject

if TYPE_CHECKING:
    from anyio.from_thread import BlockingPortal
    from litestar.background_tasks import BackgroundTask, BackgroundTasks
    from litestar.datastructures.cookie import Cookie
    from litestar.types import ResponseCookies, ResponseHeaders, TypeEncodersMap

__all__ = ("InertiaBack", "InertiaExternalRedirect", "InertiaRedirect", "InertiaResponse")

T = TypeVar("T")

_FORWARDED_PROTO_HEADER = "x-forwarded-proto"


def _as_prop(value: Any) -> Any:
    """Classify a prop value when it enters a response.

    Bare zero-argument callables become :class:`LazyProp` so resolution never has to guess what a callable means.
    """
    if isinstance(value, (LazyProp, InertiaResponse, type)) or not callable(value):
        return value
    return LazyProp(value)


def _get_details(request: "Request[Any, Any, Any]") -> InertiaDetails:
    if isinstance(request, InertiaRequest):
        return request.inertia
    return InertiaDetails(request)


def _get_scheme(request: "Request[Any, Any, Any]", default: str) -> str:
    """Return the scheme the client used, preferring TLS and proxy signals over the configured default."""
    if request.scope.get("scheme") in {"https", "wss"}:
        return "https"
    if request.headers.get(_FORWARDED_PROTO_HEADER, "").lower() == "https":
        return "https"
    return default


def _get_relative_url(request: "Request[Any, Any, Any]") -> str:
    """Return the relative URL including query string for the page object.

    Args:
        request: The request object.

    Returns:
        The path with query string if present, e.g., ``/reports?page=1&status=active``.
    """
    path = request.url.path
    query = request.url.query
    return f"{path}?{query}" if query else path


def _get_redirect_url(request: "Request[Any, Any, Any]", url: "str | None") -> str:
    """Return a safe redirect URL, falling back to base_url when invalid.

    Args:
        request: The request object.
        url: Candidate redirect URL.

    Returns:
        A safe redirect URL (same-origin absolute, or relative), otherwise the request base URL.
    """
    base_url = str(request.base_url)

    if not url:
        return base_url

    parsed = urlparse(url)
    base = urlparse(base_url)

    if not parsed.scheme and not parsed.netloc:
        return url

    if parsed.scheme not in {"http", "https"}:
        return base_url

    if parsed.netloc != base.netloc:
        return base_url

    return url


class InertiaResponse(Response[T]):
    """Inertia Response.

    Holds a component name, the props sent to it and data only the root template sees.  The builder methods
    (:meth:`with_props`, :meth:`with_view_data`, :meth:`with_status`) return new responses, so a partially built
    response can be reused as the base of several others.

    Example::

        @get("/users")
        async def users() -> InertiaResponse:
            return InertiaResponse(component="Users/Index", props={"users": lazy(load_users)}).with_view_data(
                "title", "Users"
            )
    """

    def __init__(
        self,
        content: "T | None" = None,
        *,
        component: "str | None" = None,
        props: "Mapping[str, Any] | None" = None,
        view_data: "Mapping[str, Any] | None" = None,
        root_view: "str | None" = None,
        version: "str | None" = None,
        background: "BackgroundTask | BackgroundTasks | None" = None,
        cookies: "ResponseCookies | None" = None,
        encoding: "str" = "utf-8",
        headers: "ResponseHeaders | None" = None,
        media_type: "MediaType | str | None" = None,
        status_code: "int" = HTTP_200_OK,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> None:
        """Initialize the response.

        Args:
            content: Value returned by a route handler.  When it is a mapping its items become props, otherwise it
                is sent as the ``content`` prop.  Non-Inertia routes render it as plain JSON.
            component: The client-side component to render.  Defaults to the route's ``component`` opt.
            props: Props for the component.  Values may be plain data, a zero-argument callable or
                :class:`LazyProp` evaluated only if sent, or a nested :class:`InertiaResponse`.
            view_data: Data passed to the root template only.
            root_view: Template rendered for full page visits.  Defaults to ``InertiaConfig.root_template``.
            version: Asset version snapshot.  Defaults to the plugin's current version at send time.
            background: A background task or tasks to run after the response is sent.
            cookies: Cookies to set on the response.
            encoding: Content encoding
            headers: A string keyed dictionary of response headers. Header keys are insensitive.
            media_type: Media type of the response.  Inferred when not set.
            status_code: A value for the response HTTP status code.
            type_encoders: A mapping of types to callables that transform them into types supported for serialization.
        """
        super().__init__(
            content=cast("T", content),
            background=background,
            cookies=cookies,
            encoding=encoding,
            headers=headers,
            media_type=media_type,
            status_code=status_code,
            type_encoders=type_encoders,
        )
        self.component = component
        self.props: "dict[str, Any]" = {key: _as_prop(value) for key, value in (props or {}).items()}
        self.view_data: "dict[str, Any]" = dict(view_data or {})
        self.root_view = root_view
        self.version = version

    def _copy(self) -> "InertiaResponse[T]":
        clone = copy.copy(self)
        clone.props = dict(self.props)
        clone.view_data = dict(self.view_data)
        clone.headers = dict(self.headers)
        clone.cookies = list(self.cookies)
        return clone

    def with_props(self, key: "str | Mapping[str, Any]", value: Any = None) -> "InertiaResponse[T]":
        """Return a copy with one prop, or every item of a mapping, set.

        Args:
            key: A prop name, or a mapping of props.
            value: The prop value when ``key`` is a name.

        Returns:
            The new response.
        """
        clone = self._copy()
        items = key.items() if isinstance(key, Mapping) else ((key, value),)
        for prop_key, prop_value in items:
            clone.props[prop_key] = _as_prop(prop_value)
        return clone

    def with_view_data(self, key: "str | Mapping[str, Any]", value: Any = None) -> "InertiaResponse[T]":
        """Return a copy with extra root template data.

        A single key is visible to the template only.  A mapping is added to both the template data and the
        props, so values the template needs stay available to partial reloads.

        Args:
            key: A name, or a mapping of values.
            value: The value when ``key`` is a name.

        Returns:
            The new response.
        """
        clone = self._copy()
        if isinstance(key, Mapping):
            for data_key, data_value in key.items():
                clone.props[data_key] = _as_prop(data_value)
                clone.view_data[data_key] = data_value
        else:
            clone.view_data[key] = value
        return clone

    def with_status(self, status_code: int) -> "InertiaResponse[T]":
        """Return a copy with a different status code."""
        clone = self._copy()
        clone.status_code = status_code
        return clone

    def _collect_props(self, request: "Request[Any, Any, Any]", inertia_plugin: "InertiaPlugin") -> "dict[str, Any]":
        """Merge static, shared, content and explicit props, in increasing precedence.

        Shared props are taken from the store, so they are consumed by the first response built for the request.
        """
        props: "dict[str, Any]" = dict(inertia_plugin.config.extra_page_props)
        request_id = get_request_id(request.scope)
        if request_id is not None:
            props.update({key: _as_prop(value) for key, value in inertia_plugin.store.take_all(request_id).items()})
        if isinstance(self.content, Mapping):
            props.update({key: _as_prop(value) for key, value in cast("Mapping[str, Any]", self.content).items()})
        elif self.content is not None:
            props["content"] = self.content
        props.update(self.props)
        return props

    def _resolve(
        self,
        value: Any,
        request: "Request[Any, Any, Any]",
        inertia_plugin: "InertiaPlugin",
        component: "str | None",
    ) -> Any:
        """Resolve lazy props and nested responses, depth first.

        Fragments without a component of their own inherit ``component``, the one of the page they are nested in.
        """
        if isinstance(value, str):
            return value
        if is_lazy_prop(value):
            return self._resolve(value.render(inertia_plugin.portal), request, inertia_plugin, component)
        if isinstance(value, InertiaResponse):
            fragment = cast("InertiaResponse[Any]", value)
            return fragment.build_page(
                request, fragment.props, inertia_plugin, component=fragment.component or component
            ).to_dict()
        if isinstance(value, Mapping):
            return {
                key: self._resolve(item, request, inertia_plugin, component)
                for key, item in cast("Mapping[str, Any]", value).items()
            }
        if isinstance(value, (list, tuple)):
            items = [self._resolve(item, request, inertia_plugin, component) for item in cast("Iterable[Any]", value)]
            if hasattr(value, "_fields"):
                # named tuples take their fields positionally
                return type(value)(*items)  # pyright: ignore[reportUnknownArgumentType]
            return tuple(items) if isinstance(value, tuple) else items
        return value

    def build_page(
        self,
        request: "Request[Any, Any, Any]",
        props: "Mapping[str, Any]",
        inertia_plugin: "InertiaPlugin",
        component: "str | None" = None,
    ) -> PageObject:
        """Resolve ``props`` and assemble the page object for this request.

        Args:
            request: The request being answered.
            props: The props to send, already filtered for partial reloads.
            inertia_plugin: The Inertia plugin instance.
            component: Component name overriding :attr:`component`.

        Returns:
            The page object.
        """
        component = component or self.component
        return PageObject(
            component=cast("str", component),
            props=self._resolve(props, request, inertia_plugin, component),
            url=_get_relative_url(request),
            version=self.version if self.version is not None else inertia_plugin.versions.get_version(),
            host=request.headers.get("host", request.url.netloc),
            path=request.url.path,
            scheme=_get_scheme(request, inertia_plugin.config.scheme),
            method=request.method,
            status=self.status_code,
        )

    def create_template_context(
        self,
        request: "Request[Any, Any, Any]",
        page: PageObject,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> "dict[str, Any]":
        """Create a context object for the template.

        Args:
            request: A :class:`Request <.connection.Request>` instance.
            page: The page object.
            type_encoders: A mapping of types to callables that transform them into types supported for serialization.

        Returns:
            A dictionary holding the template context
        """
        csrf_token = value_or_default(ScopeState.from_scope(request.scope).csrf_token, "")
        page_dict = page.to_dict()
        return {
            **self.view_data,
            "page": page_dict,
            "page_json": self.render(page_dict, MediaType.JSON, get_serializer(type_encoders)).decode(),
            "request": request,
            "csrf_input": f'<input type="hidden" name="_csrf_token" value="{csrf_token}" />',
        }

    def _render_template(
        self,
        request: "Request[Any, Any, Any]",
        page: PageObject,
        type_encoders: "TypeEncodersMap | None",
        inertia_plugin: "InertiaPlugin",
    ) -> bytes:
        template_engine = request.app.template_engine  # pyright: ignore[reportUnknownVariableType,reportUnknownMemberType]
        if not template_engine:
            msg = "Template engine is not configured"
            raise ImproperlyConfiguredException(msg)

        context = self.create_template_context(request, page, type_encoders)
        template_name = self.root_view or inertia_plugin.config.root_template
        template = template_engine.get_template(template_name)  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        return template.render(**context).encode(self.encoding)  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]

    def to_asgi_response(
        self,
        app: "Litestar | None",
        request: "Request[Any, Any, Any]",
        *,
        background: "BackgroundTask | BackgroundTasks | None" = None,
        cookies: "Iterable[Cookie] | None" = None,
        encoded_headers: "Iterable[tuple[bytes, bytes]] | None" = None,
        headers: "dict[str, str] | None" = None,
        is_head_response: "bool" = False,
        media_type: "MediaType | str | None" = None,
        status_code: "int | None" = None,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> "ASGIResponse":
        details = _get_details(request)
        component = self.component or details.route_component
        if component is None:
            return super().to_asgi_response(
                app,
                request,
                background=background,
                cookies=cookies,
                encoded_headers=encoded_headers,
                headers=headers,
                is_head_response=is_head_response,
                media_type=media_type,
                status_code=status_code,
                type_encoders=type_encoders,
            )

        inertia_plugin = request.app.plugins.get(InertiaPlugin)
        headers = {**headers, **self.headers} if headers is not None else dict(self.headers)
        cookies = self.cookies if cookies is None else itertools.chain(self.cookies, cookies)
        type_encoders = (
            {**type_encoders, **(self.response_type_encoders or {})} if type_encoders else self.response_type_encoders
        )

        props = self._collect_props(request, inertia_plugin)
        if details.is_partial_render(component):
            props = filter_props(props, details.partial_keys, details.partial_except_keys)
        page = self.build_page(request, props, inertia_plugin, component=component)

        if details:
            headers.update({"Vary": "Accept", **get_headers(InertiaHeaderType(enabled=True))})
            resolved_media_type = get_enum_string_value(self.media_type or media_type or MediaType.JSON)
            body = self.render(page.to_dict(), resolved_media_type, get_serializer(type_encoders))
        else:
            # the handler's JSON media type does not apply to the rendered page
            resolved_media_type = get_enum_string_value(media_type or MediaType.HTML)
            body = self._render_template(request, page, type_encoders, inertia_plugin)

        return ASGIResponse(
            background=self.background or background,
            body=body,
            cookies=cookies,
            encoded_headers=encoded_headers,
            encoding=self.encoding,
            headers=headers,
            is_head_response=is_head_response,
            media_type=resolved_media_type,
            status_code=self.status_code or status_code,
        )


class InertiaExternalRedirect(Response[Any]):
    """Force the Inertia client into a full page visit (409 + ``X-Inertia-Location``).

    Used for asset version mismatches and for redirects to non-Inertia pages, including other origins.
    """

    def __init__(self, request: "Request[Any, Any, Any]", redirect_to: "str", **kwargs: "Any") -> None:
        """Initialize external redirect with 409 status and X-Inertia-Location header.

        Args:
            request: The request object.
            redirect_to: The URL to redirect to (can be external).
            **kwargs: Additional keyword arguments passed to the Response constructor.
        """
        super().__init__(
            content=b"",
            status_code=HTTP_409_CONFLICT,
            headers=get_headers(InertiaHeaderType(location=quote(redirect_to, safe="/#%[]=:;$&()+,!?*@'~"))),
            **kwargs,
        )


class InertiaRedirect(Redirect):
    """Redirect to a specified URL with same-origin validation.

    Uses ``303 See Other`` for non-GET requests so the client follows up with a GET.
    """

    def __init__(self, request: "Request[Any, Any, Any]", redirect_to: "str", **kwargs: "Any") -> None:
        """Initialize redirect with safe URL validation.

        Args:
            request: The request object.
            redirect_to: The URL to redirect to. Must be same-origin or relative.
            **kwargs: Additional keyword arguments passed to the Redirect constructor.
        """
        safe_url = _get_redirect_url(request, redirect_to)
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=safe_url,
            status_code=HTTP_307_TEMPORARY_REDIRECT if request.method == "GET" else HTTP_303_SEE_OTHER,
            **kwargs,
        )


class InertiaBack(Redirect):
    """Redirect back to the previous page using the Referer header.

    Falls back to the application's base URL when the Referer is missing or not same-origin.
    """

    def __init__(self, request: "Request[Any, Any, Any]", **kwargs: "Any") -> None:
        """Initialize back redirect with safe URL validation.

        Args:
            request: The request object.
            **kwargs: Additional keyword arguments passed to the Redirect constructor.
        """
        safe_url = _get_redirect_url(request, _get_details(request).referer)
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=safe_url,
            status_code=HTTP_307_TEMPORARY_REDIRECT if request.method == "GET" else HTTP_303_SEE_OTHER,
            **kwargs,
        )
