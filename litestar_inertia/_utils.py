from enum import Enum
from typing import TYPE_CHECKING, Any

from litestar.cli._utils import console  # pyright: ignore[reportPrivateImportUsage]

if TYPE_CHECKING:
    from collections.abc import Callable

    from litestar.types import Scope

    from litestar_inertia.types import InertiaHeaderType

__all__ = (
    "REDIRECT_REWRITE_METHODS",
    "REQUEST_ID_STATE_KEY",
    "InertiaHeaders",
    "get_headers",
    "get_request_id",
    "log_info",
    "log_warn",
)

REQUEST_ID_STATE_KEY = "_inertia_request_id"
"""Key under ``scope["state"]`` holding the id that scopes shared props to one request."""

REDIRECT_REWRITE_METHODS = frozenset({"PUT", "PATCH", "DELETE"})
"""Methods whose ``302 Found`` redirects are rewritten to ``303 See Other`` for Inertia clients."""

_INFO = "[cyan]•[/]"
_WARN = "[yellow]![/]"


class InertiaHeaders(str, Enum):
    """Enum for Inertia Headers.

    See: https://inertiajs.com/the-protocol
    """

    ENABLED = "X-Inertia"
    VERSION = "X-Inertia-Version"
    LOCATION = "X-Inertia-Location"
    REFERER = "Referer"

    PARTIAL_DATA = "X-Inertia-Partial-Data"
    PARTIAL_COMPONENT = "X-Inertia-Partial-Component"
    PARTIAL_EXCEPT = "X-Inertia-Partial-Except"


def get_enabled_header(enabled: bool = True) -> "dict[str, Any]":
    """True if inertia is enabled.

    Args:
        enabled: Whether inertia is enabled.

    Returns:
        The headers for inertia.
    """

    return {InertiaHeaders.ENABLED.value: "true" if enabled else "false"}


def get_location_header(location: str) -> "dict[str, Any]":
    """Return the header forcing a full page visit on the client.

    Args:
        location: The URL the client must load.

    Returns:
        The headers for inertia.
    """
    return {InertiaHeaders.LOCATION.value: location}


def get_headers(inertia_headers: "InertiaHeaderType") -> "dict[str, Any]":
    """Return headers for Inertia responses.

    Args:
        inertia_headers: The inertia headers.

    Raises:
        ValueError: If the inertia headers are None.

    Returns:
        The headers for inertia.
    """
    if not inertia_headers:
        msg = "Value for inertia_headers cannot be None."
        raise ValueError(msg)
    inertia_headers_dict: "dict[str, Callable[..., dict[str, Any]]]" = {
        "enabled": get_enabled_header,
        "location": get_location_header,
    }

    header: "dict[str, Any]" = {}
    for key, value in inertia_headers.items():
        if value is not None:
            header.update(inertia_headers_dict[key](value))
    return header


def get_request_id(scope: "Scope") -> "str | None":
    """Return the shared-prop request id assigned by the middleware, if any."""
    state = scope.get("state")  # pyright: ignore[reportUnknownMemberType]
    if not state:
        return None
    return state.get(REQUEST_ID_STATE_KEY)  # pyright: ignore[reportUnknownMemberType]


def log_info(message: str) -> None:
    console.print(f"{_INFO} {message}")


def log_warn(message: str) -> None:
    console.print(f"{_WARN} {message}")
