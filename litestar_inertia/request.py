from functools import cached_property
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import unquote

from litestar import Request
from litestar.connection.base import AuthT, StateT, UserT, empty_receive, empty_send

from litestar_inertia._utils import InertiaHeaders, get_request_id
from litestar_inertia.helpers import parse_keys

if TYPE_CHECKING:
    from litestar.types import Receive, Scope, Send

    from litestar_inertia.plugin import InertiaPlugin

__all__ = ("InertiaDetails", "InertiaHeaders", "InertiaRequest")

_DEFAULT_COMPONENT_OPT_KEY = "component"


class InertiaDetails:
    """InertiaDetails holds all the values sent by Inertia client in headers and provide convenient properties."""

    def __init__(self, request: "Request[Any, Any, Any]") -> None:
        """Initialize :class:`InertiaDetails`"""
        self.request = request

    def _get_header_value(self, name: "InertiaHeaders") -> "str | None":
        """Parse request header

        Check for uri encoded header and unquotes it in readable format.

        Args:
            name: The header name.

        Returns:
            The header value.
        """

        if value := self.request.headers.get(name.value.lower()):
            is_uri_encoded = self.request.headers.get(f"{name.value.lower()}-uri-autoencoded") == "true"
            return unquote(value) if is_uri_encoded else value
        return None

    def _get_route_component(self) -> "str | None":
        rh = self.request.scope.get("route_handler")  # pyright: ignore[reportUnknownMemberType]
        if rh:
            component_opt_key = _DEFAULT_COMPONENT_OPT_KEY
            try:
                inertia_plugin = cast("InertiaPlugin", self.request.app.plugins.get("InertiaPlugin"))
                component_opt_key = inertia_plugin.config.component_opt_key
            except KeyError:
                pass
            if (value := rh.opt.get(component_opt_key)) is not None:
                return cast("str", value)
        return None

    def __bool__(self) -> bool:
        """Return True when the request asks for a JSON page object (``X-Inertia: true``)."""
        return self._get_header_value(InertiaHeaders.ENABLED) == "true"

    @cached_property
    def is_present(self) -> bool:
        """Return True when the ``X-Inertia`` header is sent with any value."""
        return InertiaHeaders.ENABLED.value.lower() in self.request.headers

    @cached_property
    def route_component(self) -> "str | None":
        return self._get_route_component()

    @cached_property
    def partial_component(self) -> "str | None":
        return self._get_header_value(InertiaHeaders.PARTIAL_COMPONENT)

    @cached_property
    def partial_data(self) -> "str | None":
        return self._get_header_value(InertiaHeaders.PARTIAL_DATA)

    @cached_property
    def partial_except(self) -> "str | None":
        return self._get_header_value(InertiaHeaders.PARTIAL_EXCEPT)

    @cached_property
    def version(self) -> "str | None":
        """Return the Inertia asset version sent by the client."""
        return self._get_header_value(InertiaHeaders.VERSION)

    @cached_property
    def referer(self) -> "str | None":
        return self._get_header_value(InertiaHeaders.REFERER)

    @cached_property
    def partial_keys(self) -> "set[str] | None":
        return parse_keys(self.partial_data)

    @cached_property
    def partial_except_keys(self) -> "set[str] | None":
        return parse_keys(self.partial_except)

    def is_partial_render(self, component: "str | None") -> bool:
        """Return True when this request is a partial reload of ``component``.

        Args:
            component: The component being rendered.

        Returns:
            True if the client targets ``component`` and names props to include or exclude.
        """
        return bool(
            self
            and component is not None
            and self.partial_component == component
            and (self.partial_keys or self.partial_except_keys)
        )


class InertiaRequest(Request[UserT, AuthT, StateT]):
    """Inertia Request class to work with Inertia client."""

    __slots__ = ("inertia",)

    def __init__(self, scope: "Scope", receive: "Receive" = empty_receive, send: "Send" = empty_send) -> None:
        """Initialize :class:`InertiaRequest`"""
        super().__init__(scope=scope, receive=receive, send=send)
        self.inertia = InertiaDetails(self)

    @property
    def is_inertia(self) -> bool:
        """True if the request was sent by the Inertia client router."""
        return bool(self.inertia)

    @property
    def inertia_enabled(self) -> bool:
        """True if the route handler is configured with an Inertia component."""
        return self.inertia.route_component is not None

    @property
    def inertia_version(self) -> "str | None":
        return self.inertia.version

    @property
    def request_id(self) -> "str | None":
        """The id scoping this request's shared props."""
        return get_request_id(self.scope)
